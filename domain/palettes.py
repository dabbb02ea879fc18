from __future__ import annotations
from typing import Dict, Tuple

from domain.dtos import Color, SkinTonePalette
from domain.errors import ConfigurationError


def _colors(*hexes: str) -> Tuple[Color, ...]:
    return tuple(Color.parse(h) for h in hexes)


# Keyed by the classifier's output index. Order of target colors is significant:
# the first color reaching the minimum distance wins a tie.
PALETTES: Dict[int, SkinTonePalette] = {
    0: SkinTonePalette(
        class_id=0,
        title="Deep Cool",
        description="Rich cool undertone; suits intense dark shades and deep cocoa.",
        target_colors=_colors("#5D3A28", "#8B0000", "#4B2E2A", "#3E2723", "#581845", "#6D271A"),
    ),
    1: SkinTonePalette(
        class_id=1,
        title="Warm Medium",
        description="Golden to tan skin with a warm undertone; honey and tan nuances.",
        target_colors=_colors("#D29C7B", "#B35A5A", "#C68642", "#CD853F", "#A56B57", "#D2691E"),
    ),
    2: SkinTonePalette(
        class_id=2,
        title="Fair Ivory",
        description="Light skin with a neutral or pinkish porcelain undertone.",
        target_colors=_colors("#F5E0D6", "#FFE4C4", "#FFDEAD", "#FAEBD7", "#F0E68C", "#FFC0CB"),
    ),
}

# Shown by front ends before the first analysis completes.
DEFAULT_CLASS_ID = 1


def palette_for(class_id: int) -> SkinTonePalette:
    try:
        return PALETTES[int(class_id)]
    except KeyError:
        raise ConfigurationError(f"no palette registered for class id {class_id}") from None


def ensure_palettes_for(num_classes: int) -> None:
    """Raise ConfigurationError unless every class 0..num_classes-1 has a palette."""
    missing = [i for i in range(num_classes) if i not in PALETTES]
    if missing:
        raise ConfigurationError(
            f"model emits {num_classes} classes but palettes are missing for {missing}"
        )
