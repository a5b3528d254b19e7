"""规格匹配单元测试"""
from types import SimpleNamespace

from storefront.services.variant_matching import (
    find_variant_by_all_attributes,
    find_variant_by_color_and_size,
    get_option_value,
    variant_has_color,
    variant_matches,
)


def opt(key, value, value_id=None):
    return SimpleNamespace(attribute_key=key, value=value, value_id=value_id)


def variant(name, options, stock=5, image_url=None):
    return SimpleNamespace(name=name, options=options, stock=stock, image_url=image_url)


class TestVariantMatching:
    """规格匹配测试类"""

    def test_get_option_value_normalizes(self):
        v = variant("a", [opt("size", "  M ")])
        assert get_option_value(v.options, "size") == "m"
        assert get_option_value(v.options, "color") is None
        assert get_option_value([], "size") is None

    def test_variant_with_multiple_colors(self):
        v = variant("a", [opt("color", "Red"), opt("color", "Blue")])
        assert variant_has_color(v, "blue")
        assert variant_has_color(v, " RED ")
        assert not variant_has_color(v, "green")
        assert not variant_has_color(v, None)

    def test_exact_match_with_image_preferred(self):
        plain = variant("plain", [opt("color", "red"), opt("size", "m")])
        pictured = variant("pictured", [opt("color", "red"), opt("size", "m")], image_url="/red-m.jpg")
        other = variant("other", [opt("color", "blue"), opt("size", "m")], image_url="/blue-m.jpg")

        result = find_variant_by_all_attributes([plain, other, pictured], "Red", "M")
        assert result.name == "pictured"

    def test_exact_match_without_image(self):
        red_s = variant("red-s", [opt("color", "red"), opt("size", "s")])
        red_m = variant("red-m", [opt("color", "red"), opt("size", "m")])

        assert find_variant_by_all_attributes([red_s, red_m], "red", "m").name == "red-m"

    def test_custom_attribute_matches_by_value_id(self):
        cotton = variant("cotton", [opt("color", "red"), opt("material", "Cotton", "mat-1")])
        linen = variant("linen", [opt("color", "red"), opt("material", "Linen", "mat-2")])

        result = find_variant_by_all_attributes([cotton, linen], "red", None, {"material": "mat-2"})
        assert result.name == "linen"

    def test_custom_attribute_matches_by_value(self):
        cotton = variant("cotton", [opt("material", "Cotton", "mat-1")])
        linen = variant("linen", [opt("material", "Linen", "mat-2")])

        assert find_variant_by_all_attributes([cotton, linen], other_attributes={"material": "linen"}).name == "linen"

    def test_missing_custom_attribute_is_mismatch(self):
        v = variant("a", [opt("color", "red")])
        assert not variant_matches(v, "red", None, {"material": "cotton"})
        assert variant_matches(v, "red", None, {})

    def test_partial_match_falls_back_to_color_in_stock(self):
        red_s = variant("red-s", [opt("color", "red"), opt("size", "s")], stock=0)
        red_l = variant("red-l", [opt("color", "red"), opt("size", "l")], stock=3)
        blue_m = variant("blue-m", [opt("color", "blue"), opt("size", "m")])

        result = find_variant_by_all_attributes([red_s, red_l, blue_m], "red", "xl")
        assert result.name == "red-l"

    def test_partial_match_falls_back_to_size(self):
        blue_m = variant("blue-m", [opt("color", "blue"), opt("size", "m")], stock=0)
        green_m = variant("green-m", [opt("color", "green"), opt("size", "m")], stock=2)

        result = find_variant_by_color_and_size([blue_m, green_m], "purple", "m")
        assert result.name == "green-m"

    def test_no_selection_returns_first_in_stock(self):
        sold_out = variant("sold-out", [opt("size", "s")], stock=0)
        available = variant("available", [opt("size", "m")], stock=1)

        assert find_variant_by_all_attributes([sold_out, available]).name == "available"

    def test_all_sold_out_returns_first(self):
        first = variant("first", [opt("size", "s")], stock=0)
        second = variant("second", [opt("size", "m")], stock=0)

        assert find_variant_by_all_attributes([first, second], "red", None).name == "first"

    def test_no_variants(self):
        assert find_variant_by_all_attributes([], "red", "m") is None
        assert find_variant_by_color_and_size([], "red", "m") is None
