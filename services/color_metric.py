from __future__ import annotations
from typing import Optional, Union

import numpy as np

from domain.dtos import Color

ColorLike = Union[Color, str]

# Returned whenever either side is unparseable; larger than any real RGB distance (~441.7).
UNPARSEABLE_DISTANCE = 1000.0


def _as_color(value: Optional[ColorLike]) -> Optional[Color]:
    if isinstance(value, Color):
        return value
    return Color.parse(value)


def distance(a: Optional[ColorLike], b: Optional[ColorLike]) -> float:
    """Euclidean distance in RGB space."""
    c1 = _as_color(a)
    c2 = _as_color(b)
    if c1 is None or c2 is None:
        return UNPARSEABLE_DISTANCE
    return float(np.linalg.norm(np.subtract((c1.r, c1.g, c1.b), (c2.r, c2.g, c2.b))))
