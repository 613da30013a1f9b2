"""
Tests for the inventory delta applier and catalog import.

Run with: pytest tests/test_inventory.py -v
"""

from reconciler.inventory import (
    CatalogProduct,
    InventoryDelta,
    aggregate_deltas,
    apply_deltas,
    rows_to_catalog,
    unknown_delta_products,
)


def _quantities(snapshot):
    return {p.name: p.quantity_on_hand for p in snapshot}


class TestApplyDeltas:
    """Test folding deltas into a snapshot."""

    def test_decrement_and_increment(self, catalog):
        result = apply_deltas(
            catalog,
            [InventoryDelta("Red Mug", -3), InventoryDelta("Canvas Tote Black", 2)],
        )
        assert _quantities(result)["Red Mug"] == 7
        assert _quantities(result)["Canvas Tote Black"] == 9

    def test_clamps_at_zero(self, catalog):
        result = apply_deltas(catalog, [InventoryDelta("Linen Shirt Off White", -10)])
        assert _quantities(result)["Linen Shirt Off White"] == 0

    def test_sums_deltas_before_clamping(self, catalog):
        result = apply_deltas(
            catalog,
            [InventoryDelta("Red Mug", -15), InventoryDelta("Red Mug", 8)],
        )
        assert _quantities(result)["Red Mug"] == 3

    def test_unknown_product_dropped(self, catalog):
        result = apply_deltas(catalog, [InventoryDelta("Mystery Thing", -1)])
        assert result == catalog
        assert len(result) == len(catalog)

    def test_input_not_mutated(self, catalog):
        before = list(catalog)
        apply_deltas(catalog, [InventoryDelta("Red Mug", -1)])
        assert catalog == before
        assert catalog[0].quantity_on_hand == 10

    def test_untouched_products_keep_fields(self):
        product = CatalogProduct("Red Mug", 4, category="Kitchen", image_url="mug.png")
        result = apply_deltas([product], [InventoryDelta("Red Mug", -1)])
        assert result[0].category == "Kitchen"
        assert result[0].image_url == "mug.png"
        assert result[0].quantity_on_hand == 3

    def test_no_deltas(self, catalog):
        assert apply_deltas(catalog, []) == catalog


class TestAggregate:

    def test_first_seen_order(self):
        deltas = [
            InventoryDelta("B", -1),
            InventoryDelta("A", 2),
            InventoryDelta("B", -4),
        ]
        assert aggregate_deltas(deltas) == [InventoryDelta("B", -5), InventoryDelta("A", 2)]

    def test_unknown_products(self, catalog):
        deltas = [
            InventoryDelta("Mystery", -1),
            InventoryDelta("Red Mug", -1),
            InventoryDelta("Mystery", -2),
        ]
        assert unknown_delta_products(catalog, deltas) == ["Mystery"]


class TestCatalogRows:
    """Test catalog import from inventory sheet rows."""

    def test_basic_rows(self):
        rows = [
            {"Product": "Red Mug", "Qty": "12", "Category": "Kitchen"},
            {"Product": "Canvas Tote", "Qty": "", "Type": "Bag"},
        ]
        products = rows_to_catalog(rows)
        assert products[0] == CatalogProduct("Red Mug", 12, category="Kitchen")
        assert products[1] == CatalogProduct("Canvas Tote", 0, product_type="Bag")

    def test_negative_and_invalid_quantities(self):
        rows = [
            {"Products": "A", "quanity": "-3"},
            {"Products": "B", "quanity": "n/a"},
        ]
        assert [p.quantity_on_hand for p in rows_to_catalog(rows)] == [0, 0]

    def test_rows_without_name_skipped(self):
        rows = [{"Product": "", "Qty": "4"}, {"Name": "Red Mug", "Quantity": 2}]
        assert rows_to_catalog(rows) == [CatalogProduct("Red Mug", 2)]

    def test_dict_round_trip(self):
        product = CatalogProduct("Red Mug", 3, category="Kitchen")
        assert CatalogProduct.from_dict(product.to_dict()) == product

    def test_from_dict_clamps(self):
        assert CatalogProduct.from_dict({"name": "X", "quantity_on_hand": -2}).quantity_on_hand == 0
