import pytest

from conftest import make_product
from domain.dtos import Color, SkinTonePalette
from domain.errors import ConfigurationError
from domain.palettes import PALETTES
from services.recommender import MATCH_FLOOR, ProductRecommender, best_shade, match_percent

BLACK = SkinTonePalette(class_id=9, title="Test", description="", target_colors=(Color(0, 0, 0),))


def black_recommender():
    return ProductRecommender(palettes=lambda class_id: BLACK)


def test_close_shade_scores_94():
    ranked = ProductRecommender().recommend(1, [make_product(1, "#D2967B")])
    assert len(ranked) == 1
    sp = ranked[0]
    assert sp.match_percent == 94
    assert sp.best_shade == "shade-0"
    assert sp.best_hex == "#D2967B"


def test_excluded_at_or_beyond_threshold():
    rec = black_recommender()
    assert rec.recommend(9, [make_product(1, "#000041")]) == []  # 65 units
    assert rec.recommend(9, [make_product(1, "#00003C")]) == []  # exactly 60
    kept = rec.recommend(9, [make_product(1, "#00003B")])  # 59 units
    assert [sp.match_percent for sp in kept] == [MATCH_FLOOR]


def test_far_product_excluded_with_real_palette():
    assert ProductRecommender().recommend(1, [make_product(1, "#0000FF", "#00FF00")]) == []


def test_products_without_shades_or_valid_colors_are_excluded():
    catalog = [make_product(1), make_product(2, "nope", "#12")]
    assert ProductRecommender().recommend(1, catalog) == []


def test_best_shade_is_minimum_over_all_pairs():
    product = make_product(1, "#000000", "#D2967B", "#D29C7C")
    d, shade = best_shade(product.shades, PALETTES[1].target_colors)
    assert d == 1.0
    assert shade.hex_value == "#D29C7C"


def test_first_pair_wins_distance_ties():
    product = make_product(1, "#000005", "#050000")
    d, shade = best_shade(product.shades, BLACK.target_colors)
    assert d == 5.0
    assert shade.name == "shade-0"


@pytest.mark.parametrize("d,expected", [
    (0.0, 100), (6.0, 94), (5.5, 95), (6.4, 94), (6.5, 94), (19.9, 80), (20.0, 80), (59.9, 80),
])
def test_match_percent(d, expected):
    assert match_percent(d) == expected


def test_percent_always_in_range_and_sorted_descending():
    catalog = [make_product(i, "#{:02X}0000".format(v)) for i, v in enumerate([40, 3, 59, 0, 17, 25, 10])]
    ranked = black_recommender().recommend(9, catalog)
    percents = [sp.match_percent for sp in ranked]
    assert percents == sorted(percents, reverse=True)
    assert all(80 <= p <= 100 for p in percents)
    assert len(ranked) == len(catalog)


def test_equal_scores_keep_catalog_order():
    catalog = [
        make_product("a", "#300000"),
        make_product("b", "#000002"),
        make_product("c", "#003000"),
        make_product("d", "#000030"),
    ]
    ranked = black_recommender().recommend(9, catalog)
    assert [sp.product.id for sp in ranked] == ["b", "a", "c", "d"]


def test_no_truncation():
    catalog = [make_product(i, "#D29C7B") for i in range(25)]
    assert len(ProductRecommender().recommend(1, catalog)) == 25


def test_unknown_class_raises_without_partial_results():
    catalog = [make_product(1, "#D29C7B")]
    with pytest.raises(ConfigurationError):
        ProductRecommender().recommend(7, catalog)


def test_catalog_is_not_mutated():
    catalog = [make_product(1, "#D29C7B"), make_product(2, "#000000")]
    before = list(catalog)
    ProductRecommender().recommend(1, catalog)
    assert catalog == before


def test_targets_are_parsed_once_and_shades_once_per_product(monkeypatch):
    calls = []
    real_parse = Color.parse

    def counting_parse(text):
        calls.append(text)
        return real_parse(text)

    monkeypatch.setattr(Color, "parse", staticmethod(counting_parse))
    product = make_product(1, "#D2967B", "#000000")
    ProductRecommender().recommend(1, [product])
    # one parse per shade, none for the six palette targets
    assert calls == ["#D2967B", "#000000"]
