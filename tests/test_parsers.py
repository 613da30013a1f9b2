"""
Tests for value and name parsers.

Run with: pytest tests/test_parsers.py -v
"""

from datetime import datetime

import pandas as pd
import pytest

from reconciler.parsers import DateParser, NumberParser, ProductNameNormalizer


@pytest.fixture
def numbers():
    return NumberParser()


@pytest.fixture
def dates():
    return DateParser()


@pytest.fixture
def names():
    return ProductNameNormalizer()


class TestNumberParser:
    """Test numeric cell normalization."""

    def test_accounting_negative(self, numbers):
        assert numbers.parse("(1,234.50)") == -1234.50

    def test_currency_symbol(self, numbers):
        assert numbers.parse("₱500") == 500

    def test_unparsable_uses_fallback(self, numbers):
        assert numbers.parse("abc", 0) == 0
        assert numbers.parse("abc", fallback=None) is None

    @pytest.mark.parametrize("raw", ["−12", "–12", "—12"])
    def test_unicode_minus_variants(self, numbers, raw):
        assert numbers.parse(raw) == -12

    def test_parenthesized_negative_not_double_negated(self, numbers):
        assert numbers.parse("(−20)") == -20

    def test_malformed_number(self, numbers):
        assert numbers.parse("1-2", fallback=7) == 7
        assert numbers.parse("1.2.3", fallback=7) == 7

    def test_native_numbers(self, numbers):
        assert numbers.parse(3) == 3.0
        assert numbers.parse(2.5) == 2.5

    def test_missing_values(self, numbers):
        assert numbers.parse(None, fallback=1) == 1
        assert numbers.parse(float("nan"), fallback=1) == 1
        assert numbers.parse(True, fallback=1) == 1

    def test_parse_series(self, numbers):
        result = numbers.parse_series(pd.Series(["₱1,000", "(5)", "x"]))
        assert result.tolist() == [1000.0, -5.0, 0.0]


class TestDateParser:
    """Test date normalization to YYYY-MM-DD."""

    def test_spreadsheet_serial(self, dates):
        assert dates.parse(45292) == "2024-01-01"

    def test_serial_as_text(self, dates):
        assert dates.parse("45292") == "2024-01-01"

    @pytest.mark.parametrize(
        "raw",
        [
            "3/15/2024",
            "15/03/2024",
            "15-03-2024",
            "15 Mar 2024",
            "15 March 2024",
            "Mar 15, 2024",
            "March 15 2024",
            "2024-03-15",
            "2024/3/15",
            "2024-03-15 10:22:01",
        ],
    )
    def test_text_formats(self, dates, raw):
        assert dates.parse(raw) == "2024-03-15"

    def test_day_first_when_ambiguous(self, dates):
        assert dates.parse("04/05/2024") == "2024-05-04"

    def test_datetime_input(self, dates):
        assert dates.parse(datetime(2024, 3, 15, 10, 30)) == "2024-03-15"

    def test_empty(self, dates):
        assert dates.parse("") == ""
        assert dates.parse(None) == ""
        assert dates.parse("   ") == ""

    def test_unrecognized_returns_first_token(self, dates):
        assert dates.parse("someday soon") == "someday"
        assert dates.parse("15 Foo 2024") == "15"

    def test_display_format(self, dates):
        assert dates.format_display("2024-03-15") == "15/03/2024"
        assert dates.format_display(45292) == "01/01/2024"
        assert dates.format_display("") == "—"


class TestProductNameNormalizer:
    """Test display names, canonical forms and tokens."""

    def test_display_name_strips_sku_noise(self, names):
        assert names.display_name("Tote Bag #12") == "Tote Bag"

    def test_display_name_keeps_attached_numbers(self, names):
        assert names.display_name("Bottle 500ml") == "Bottle 500ml"
        assert names.display_name("2-pack Socks") == "2-pack Socks"

    def test_canonicalize(self, names):
        assert names.canonicalize("Canvas Tote - Fuchsia!") == "canvas tote fuchsia"
        assert names.canonicalize(None) == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "Canvas Tote - Free Gift",
            "Canvas Tote (Large)",
            "Canvas Tote / Black",
            "Canvas Tote, Black",
            "  Canvas Tote  ",
        ],
    )
    def test_clean_name(self, names, raw):
        assert names.clean_name(raw) == "Canvas Tote"

    def test_tokenize_applies_synonyms(self, names):
        assert names.tokenize("fuschia offwhite tote") == ["fuchsia", "off", "white", "tote"]

    def test_tokenize_drops_empties(self, names):
        assert names.tokenize("") == []
        assert names.tokenize("red  mug") == ["red", "mug"]

    def test_custom_synonyms(self):
        names = ProductNameNormalizer({"grey": "gray"})
        assert names.tokenize("grey fuschia") == ["gray", "fuschia"]

    def test_normalize_series(self, names):
        result = names.normalize_series(pd.Series(["Red Mug #3", ""]))
        assert result.tolist() == ["red mug", None]
