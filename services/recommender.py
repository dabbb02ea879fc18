from __future__ import annotations
import math
from typing import Callable, Iterable, List, Optional, Tuple

from domain.dtos import Color, Product, ScoredProduct, Shade, SkinTonePalette
from domain.palettes import palette_for
from services.color_metric import UNPARSEABLE_DISTANCE, distance

# RGB-Euclidean cutoff; a product is kept only if its best shade is strictly closer.
MATCH_THRESHOLD = 60.0
# Any product that passes the cutoff shows at least this percentage.
MATCH_FLOOR = 80


def match_percent(best_distance: float) -> int:
    # halves round up, so 100 - 5.5 -> 95
    return max(MATCH_FLOOR, int(math.floor(100 - best_distance + 0.5)))


def best_shade(shades: Iterable[Shade], target_colors: Iterable[Color]) -> Tuple[float, Optional[Shade]]:
    """Closest (distance, shade) over every shade x target pair; the first pair wins ties."""
    targets = tuple(target_colors)
    best_distance = math.inf
    best: Optional[Shade] = None
    for shade in shades:
        color = Color.parse(shade.hex_value)
        for target in targets:
            d = distance(color, target) if color is not None else UNPARSEABLE_DISTANCE
            if d < best_distance:
                best_distance, best = d, shade
    return best_distance, best


class ProductRecommender:
    """Scores a catalog against the predicted class's target colors.

    Cost is products x shades x target colors; with six targets per palette it
    stays linear in catalog size.
    """

    def __init__(
        self,
        palettes: Callable[[int], SkinTonePalette] = palette_for,
        threshold: float = MATCH_THRESHOLD,
    ) -> None:
        self.palettes = palettes
        self.threshold = threshold

    def score(self, product: Product, palette: SkinTonePalette) -> Optional[ScoredProduct]:
        d, shade = best_shade(product.shades, palette.target_colors)
        if shade is None or d >= self.threshold:
            return None
        return ScoredProduct(
            product=product,
            match_percent=match_percent(d),
            best_shade=shade.name,
            best_hex=shade.hex_value,
        )

    def recommend(self, class_id: int, catalog: Iterable[Product]) -> List[ScoredProduct]:
        palette = self.palettes(class_id)
        scored = []
        for product in catalog:
            sp = self.score(product, palette)
            if sp is not None:
                scored.append(sp)
        # sorted() is stable: equal percentages keep catalog order
        return sorted(scored, key=lambda sp: sp.match_percent, reverse=True)
