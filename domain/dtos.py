from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

_HEX_RE = re.compile(r"#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})", re.IGNORECASE)


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    @staticmethod
    def parse(text: object) -> Optional["Color"]:
        """`#RRGGBB` or `RRGGBB`, any case. Returns None when unparseable."""
        if not isinstance(text, str):
            return None
        m = _HEX_RE.fullmatch(text)
        if m is None:
            return None
        return Color(*(int(part, 16) for part in m.groups()))

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


@dataclass(frozen=True)
class SkinTonePalette:
    class_id: int
    title: str
    description: str
    target_colors: Tuple[Color, ...]


@dataclass(frozen=True)
class Shade:
    name: str
    hex_value: str  # raw catalog value, may be malformed


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    brand: Optional[str] = None
    price: Optional[str] = None
    price_sign: Optional[str] = None
    product_link: Optional[str] = None
    image_link: Optional[str] = None
    shades: Tuple[Shade, ...] = ()


@dataclass(frozen=True)
class ScoredProduct:
    product: Product
    match_percent: int
    best_shade: str
    best_hex: str


@dataclass(frozen=True)
class AnalysisResult:
    class_id: int
    palette: SkinTonePalette
    products: Tuple[ScoredProduct, ...]
    probabilities: Tuple[float, ...] = field(default=())

    @property
    def confidence(self) -> float:
        if not self.probabilities:
            return 0.0
        return float(self.probabilities[self.class_id])

    @property
    def has_matches(self) -> bool:
        return bool(self.products)


@dataclass(frozen=True)
class Page:
    number: int
    size: int
    items: Tuple[ScoredProduct, ...]
    total_pages: int

    @property
    def has_prev(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages
