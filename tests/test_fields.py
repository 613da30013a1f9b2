"""
Tests for the field resolver.

Run with: pytest tests/test_fields.py -v
"""

import pytest

from reconciler.fields import FieldResolver, collect_totals, normalize_label
from marketplaces.profiles import ORDER_ID_LABELS


@pytest.fixture
def resolver():
    return FieldResolver()


class TestNormalizeLabel:

    def test_normalization(self):
        assert normalize_label("  Order   No. ") == "order no"
        assert normalize_label("Order-ID") == "orderid"
        assert normalize_label("Delivered Date / Estimated Payout Date") == (
            "delivered date  estimated payout date"
        )


class TestResolve:
    """Test canonical field resolution."""

    def test_candidate_priority(self, resolver):
        row = {"Order No": "111", "Order Number": "222"}
        assert resolver.resolve(row, ["Order Number", "Order No"]) == "222"
        assert resolver.resolve(row, ["Order No", "Order Number"]) == "111"

    def test_case_and_punctuation_insensitive(self, resolver):
        row = {"ORDER-ID": "A1"}
        assert resolver.resolve(row, ORDER_ID_LABELS) == "A1"

    def test_substring_match(self, resolver):
        row = {"Product Name (English)": "Red Mug"}
        assert resolver.resolve(row, ["Product Name"]) == "Red Mug"

    def test_exact_preferred_over_substring(self, resolver):
        row = {"Product Name Extra": "wrong", "Product Name": "right"}
        assert resolver.resolve(row, ["Product Name"]) == "right"

    def test_blank_value_falls_through(self, resolver):
        row = {"Order ID": "   ", "Order Number": "X9"}
        assert resolver.resolve(row, ["Order ID", "Order Number"]) == "X9"

    def test_value_trimmed(self, resolver):
        assert resolver.resolve({"Status": "  Completed "}, ["Status"]) == "Completed"

    def test_non_string_values(self, resolver):
        assert resolver.resolve({"Quantity": 2}, ["Quantity"]) == "2"
        assert resolver.resolve({"Quantity": None, "Qty": 3}, ["Quantity", "Qty"]) == "3"
        assert resolver.resolve({"Quantity": float("nan")}, ["Quantity"], "0") == "0"

    def test_fallback_when_unresolved(self, resolver):
        assert resolver.resolve({}, ["Order ID"]) == ""
        assert resolver.resolve({"Other": "x"}, ["Order ID"], "none") == "none"

    def test_no_edit_distance_matching(self, resolver):
        assert resolver.resolve({"Quantty": "2"}, ["Quantity"]) == ""

    def test_deterministic_across_rows(self, resolver):
        rows = [{"Order ID": "A1"}, {"Order ID": "A2"}]
        assert [resolver.resolve(r, ["Order ID"]) for r in rows] == ["A1", "A2"]


class TestHeaders:

    def test_resolve_header(self, resolver):
        row = {"Order Status": "", "Product": "Mug"}
        assert resolver.resolve_header(row, "Status") == "Order Status"
        assert resolver.resolve_header(row, "Tax") is None

    def test_get_cell_returns_blank_values(self, resolver):
        row = {"Order Status": "", "Product": "Mug"}
        assert resolver.get_cell(row, ["Status"]) == ("Order Status", "")
        assert resolver.get_cell(row, ["Tax"]) == (None, "")


class TestCollectTotals:

    def test_collects_every_total_column(self):
        row = {"Total": "100", "total ": "(5)", "Subtotal": "7", "TOTAL.": "abc"}
        assert collect_totals(row) == [100.0, -5.0]

    def test_no_totals(self):
        assert collect_totals({"Price": "1"}) == []
