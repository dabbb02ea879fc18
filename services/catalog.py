from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from domain.dtos import Product, Shade

log = logging.getLogger(__name__)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class CatalogRepository:
    """Read-only product catalog in the makeup-API JSON layout.

    `source` is a local path or an http(s) URL. Records keep their file order,
    which is also the ranking tie-break.
    """

    def __init__(self, source: str, timeout: float = 20.0) -> None:
        self.source = source
        self.timeout = timeout
        self._products: Optional[List[Product]] = None

    def all(self) -> List[Product]:
        if self._products is None:
            self._products = [self.product_from_dict(r) for r in self._read()]
            log.info("Loaded %d catalog products from %s", len(self._products), self.source)
        return self._products

    def _read(self) -> List[Dict[str, Any]]:
        if self.source.startswith(("http://", "https://")):
            resp = httpx.get(self.source, timeout=self.timeout, follow_redirects=True)
            resp.raise_for_status()
            data = resp.json()
        else:
            with open(self.source, "r", encoding="utf-8") as f:
                data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"catalog {self.source} must be a JSON array of products")
        return [r for r in data if isinstance(r, dict)]

    @staticmethod
    def product_from_dict(d: Dict[str, Any]) -> Product:
        shades = []
        for c in d.get("product_colors") or []:
            if not isinstance(c, dict):
                continue
            shades.append(Shade(name=str(c.get("colour_name") or "").strip(),
                                hex_value=str(c.get("hex_value") or "").strip()))
        return Product(
            id=str(d.get("id", "")),
            name=str(d.get("name") or "").strip(),
            brand=_opt_str(d.get("brand")),
            price=_opt_str(d.get("price")),
            price_sign=_opt_str(d.get("price_sign")),
            product_link=_opt_str(d.get("product_link")),
            image_link=_opt_str(d.get("image_link")),
            shades=tuple(shades),
        )
