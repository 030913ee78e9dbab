"""Tests for numeric and serving-size parsing."""

import pytest

from etl.units import (
    catalog_serving, first_present, parse_number, parse_serving, quantity_from_text, unit_from_text,
)


class TestParseNumber:
    @pytest.mark.parametrize("comma, dot", [("12,5", "12.5"), ("0,25", "0.25"), ("100", "100")])
    def test_comma_and_dot_separators_agree(self, comma, dot):
        assert parse_number(comma) == parse_number(dot)

    def test_comma_decimal(self):
        assert parse_number("12,5") == 12.5

    def test_interior_whitespace_is_stripped(self):
        assert parse_number(" 1 200,5 ") == 1200.5

    @pytest.mark.parametrize("text", [None, "", "abc", "nan", "NaN", "inf", "-Infinity", "1,2,3"])
    def test_invalid_or_non_finite_is_absent(self, text):
        assert parse_number(text) is None


class TestServing:
    def test_quantity_from_size_text(self):
        info = parse_serving("30 g", None)
        assert info.quantity == 30.0
        assert info.unit == "g"
        # "30 g" is not a plain number
        assert info.raw_size is None

    def test_dedicated_quantity_field_wins(self):
        info = parse_serving("30 g", "28")
        assert info.quantity == 28.0
        assert info.unit == "g"

    def test_non_numeric_quantity_falls_back_to_size_text(self):
        info = parse_serving("2,5 Grams", "abc")
        assert info.quantity == 2.5
        assert info.unit == "grams"

    def test_unit_need_not_follow_the_number(self):
        info = parse_serving("1 portion (250 ml)", None)
        assert info.quantity == 1.0
        assert info.unit == "ml"

    def test_numeric_size_text(self):
        info = parse_serving("250", None)
        assert info.raw_size == 250.0
        assert info.quantity == 250.0
        assert info.unit is None

    def test_nothing_derivable(self):
        assert parse_serving("one cup", None) == (None, None, None)
        assert parse_serving(None, None) == (None, None, None)

    def test_fallback_steps_are_independent(self):
        assert quantity_from_text("about 15,5 ml") == 15.5
        assert unit_from_text("about 15,5 ML") == "ml"
        assert unit_from_text("2 Milliliters") == "milliliters"
        assert quantity_from_text("no digits") is None

    @pytest.mark.parametrize("text, unit", [
        ("30g", "g"),
        ("250ml (1 cup)", "ml"),
        ("1 can (330ML)", "ml"),
        ("2 slices (45grams)", "grams"),
    ])
    def test_unit_attached_to_number(self, text, unit):
        assert unit_from_text(text) == unit

    @pytest.mark.parametrize("text", ["1 bag", "500 mg", "1 large egg", "1 cup"])
    def test_unit_letters_inside_words_are_ignored(self, text):
        assert unit_from_text(text) is None

    def test_compact_serving_size(self):
        info = parse_serving("30g", None)
        assert (info.quantity, info.unit) == (30.0, "g")

    def test_first_present(self):
        assert first_present(None, 0.0, 5.0) == 0.0
        assert first_present(None, None) is None


def test_catalog_serving_defaults():
    assert catalog_serving(None, None) == (100.0, "g")
    assert catalog_serving(30.0, None) == (30.0, "g")
    assert catalog_serving(250.0, "ml") == (250.0, "ml")
