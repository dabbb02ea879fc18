from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Sequence

from domain.dtos import Page, ScoredProduct

PAGE_SIZE = 4
MAX_PAGE_BUTTONS = 5


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    if count <= 0:
        return 0
    return math.ceil(count / page_size)


def paginate(ranked: Sequence[ScoredProduct], page_number: int, page_size: int = PAGE_SIZE) -> Page:
    """Slice one page out of the ranked list. Out-of-range pages come back empty."""
    pages = total_pages(len(ranked), page_size)
    if 1 <= page_number <= pages:
        start = (page_number - 1) * page_size
        items = tuple(ranked[start:start + page_size])
    else:
        items = ()
    return Page(number=page_number, size=page_size, items=items, total_pages=pages)


def visible_page_numbers(current: int, total: int, max_buttons: int = MAX_PAGE_BUTTONS) -> List[int]:
    if total <= max_buttons:
        return list(range(1, total + 1))
    start = max(1, current - max_buttons // 2)
    end = min(total, start + max_buttons - 1)
    if end - start + 1 < max_buttons:
        start = max(1, end - max_buttons + 1)
    return list(range(start, end + 1))


@dataclass
class PageCursor:
    total_pages: int = 0
    current: int = 1

    def next_page(self) -> bool:
        if self.current < self.total_pages:
            self.current += 1
            return True
        return False

    def prev_page(self) -> bool:
        if self.current > 1:
            self.current -= 1
            return True
        return False

    def go_to(self, page_number: int) -> bool:
        if 1 <= page_number <= self.total_pages and page_number != self.current:
            self.current = page_number
            return True
        return False

    def visible(self, max_buttons: int = MAX_PAGE_BUTTONS) -> List[int]:
        return visible_page_numbers(self.current, self.total_pages, max_buttons)
