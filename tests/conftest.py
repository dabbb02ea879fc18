import time
from typing import Callable, Optional, Sequence

import numpy as np

from domain.dtos import Product, Shade


def make_product(pid, *hexes: str, name: Optional[str] = None) -> Product:
    shades = tuple(Shade(name=f"shade-{i}", hex_value=h) for i, h in enumerate(hexes))
    return Product(id=str(pid), name=name or f"product-{pid}", brand="brand", price="9.0",
                   price_sign="$", shades=shades)


class FakeModel:
    """Stands in for a Keras model; `rule` maps an input batch to a probability row."""

    def __init__(self, rule: Callable[[np.ndarray], Sequence[float]], delay_for_bright: float = 0.0) -> None:
        self.rule = rule
        self.delay_for_bright = delay_for_bright
        self.calls = 0

    def predict(self, batch, **kwargs):
        self.calls += 1
        if self.delay_for_bright and float(batch.mean()) > 0.5:
            time.sleep(self.delay_for_bright)
        return np.asarray([self.rule(batch)], dtype=np.float32)


def brightness_rule(batch: np.ndarray) -> Sequence[float]:
    """Dark images -> class 0, mid -> class 1, bright -> class 2."""
    m = float(batch.mean())
    if m < 0.33:
        return [0.8, 0.1, 0.1]
    if m < 0.66:
        return [0.1, 0.8, 0.1]
    return [0.1, 0.1, 0.8]


def solid_image(value: int, size: int = 32) -> np.ndarray:
    return np.full((size, size, 3), value, dtype=np.uint8)
