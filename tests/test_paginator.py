import pytest

from conftest import make_product
from domain.dtos import ScoredProduct
from services.paginator import PageCursor, paginate, total_pages, visible_page_numbers


def ranked(n):
    return tuple(ScoredProduct(make_product(i, "#000000"), 100 - (i % 20), "s", "#000000") for i in range(n))


def test_empty_list():
    page = paginate((), 1)
    assert page.total_pages == 0
    assert page.items == ()
    assert total_pages(0) == 0


def test_exactly_one_page():
    items = ranked(4)
    page = paginate(items, 1)
    assert page.total_pages == 1
    assert page.items == items
    assert not page.has_next and not page.has_prev


def test_thirteen_items():
    items = ranked(13)
    assert total_pages(13) == 4
    pages = [paginate(items, n) for n in range(1, 5)]
    assert [len(p.items) for p in pages] == [4, 4, 4, 1]
    assert sum((p.items for p in pages), ()) == items
    assert pages[3].items == (items[12],)
    assert pages[1].has_prev and pages[1].has_next


@pytest.mark.parametrize("n", [0, -1, 5, 100])
def test_out_of_range_page_is_empty(n):
    page = paginate(ranked(13), n)
    assert page.items == ()
    assert page.number == n
    assert page.total_pages == 4


def test_custom_page_size():
    page = paginate(ranked(10), 2, page_size=3)
    assert page.size == 3 and page.total_pages == 4
    assert [sp.product.id for sp in page.items] == ["3", "4", "5"]


@pytest.mark.parametrize("current,total,expected", [
    (1, 4, [1, 2, 3, 4]),
    (3, 5, [1, 2, 3, 4, 5]),
    (1, 0, []),
    (1, 10, [1, 2, 3, 4, 5]),
    (2, 10, [1, 2, 3, 4, 5]),
    (5, 10, [3, 4, 5, 6, 7]),
    (9, 10, [6, 7, 8, 9, 10]),
    (10, 10, [6, 7, 8, 9, 10]),
])
def test_visible_page_numbers(current, total, expected):
    assert visible_page_numbers(current, total) == expected


def test_cursor_moves_within_bounds():
    cursor = PageCursor(total_pages=3)
    assert not cursor.prev_page() and cursor.current == 1
    assert cursor.next_page() and cursor.next_page()
    assert cursor.current == 3
    assert not cursor.next_page()
    assert cursor.current == 3
    assert cursor.prev_page() and cursor.current == 2


def test_cursor_go_to():
    cursor = PageCursor(total_pages=5)
    assert cursor.go_to(4) and cursor.current == 4
    assert not cursor.go_to(6) and cursor.current == 4
    assert not cursor.go_to(0) and cursor.current == 4
    assert cursor.visible() == [1, 2, 3, 4, 5]


def test_cursor_on_empty_result_never_moves():
    cursor = PageCursor(total_pages=0)
    assert not cursor.next_page() and not cursor.prev_page()
    assert cursor.current == 1
