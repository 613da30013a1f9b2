"""
Inventory snapshot and delta application.

The engine never writes to the inventory store directly. It receives a
read-only snapshot, computes deltas, and returns a new snapshot that the
caller hands to the store.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from .fields import FieldResolver, Row
from .parsers import NumberParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogProduct:
    """A single product in the inventory catalog."""

    name: str
    quantity_on_hand: int = 0
    category: str | None = None
    product_type: str | None = None
    image_url: str | None = None  # Display only, never used for matching

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity_on_hand": self.quantity_on_hand,
            "category": self.category,
            "product_type": self.product_type,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogProduct":
        return cls(
            name=str(data["name"]),
            quantity_on_hand=max(0, int(data.get("quantity_on_hand") or 0)),
            category=data.get("category"),
            product_type=data.get("product_type"),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class InventoryDelta:
    """Signed stock movement for one product (negative = sold)."""

    product_name: str
    signed_quantity: int


def aggregate_deltas(deltas: Iterable[InventoryDelta]) -> list[InventoryDelta]:
    """Sum deltas per product, keeping first-seen product order."""
    totals: dict[str, int] = {}
    for delta in deltas:
        totals[delta.product_name] = totals.get(delta.product_name, 0) + delta.signed_quantity
    return [InventoryDelta(name, qty) for name, qty in totals.items()]


def apply_deltas(
    snapshot: Sequence[CatalogProduct], deltas: Iterable[InventoryDelta]
) -> list[CatalogProduct]:
    """
    Fold deltas into a snapshot and return the new snapshot.

    - Quantities floor at zero; an oversell is truncated, not an error
    - Products without a delta are returned unchanged
    - Deltas naming no catalog product are dropped (nothing is created)

    Pure: the input snapshot is not modified and nothing is persisted.
    """
    totals = {d.product_name: d.signed_quantity for d in aggregate_deltas(deltas)}

    known = {p.name for p in snapshot}
    for name in totals:
        if name not in known:
            logger.debug("Dropping delta for %r: not in catalog", name)

    result = []
    for product in snapshot:
        change = totals.get(product.name)
        if change is None:
            result.append(product)
            continue
        result.append(
            replace(product, quantity_on_hand=max(0, product.quantity_on_hand + change))
        )
    return result


def unknown_delta_products(
    snapshot: Sequence[CatalogProduct], deltas: Iterable[InventoryDelta]
) -> list[str]:
    """Product names in deltas that apply_deltas() would drop."""
    known = {p.name for p in snapshot}
    names = []
    for delta in deltas:
        if delta.product_name not in known and delta.product_name not in names:
            names.append(delta.product_name)
    return names


# Inventory sheet column candidates
PRODUCT_LABELS = ["Product", "Products", "Name"]
QUANTITY_LABELS = ["Qty", "Quantity", "quanity"]
CATEGORY_LABELS = ["Category"]
TYPE_LABELS = ["Type"]
IMAGE_LABELS = ["Image URL", "image_url", "Image"]


def rows_to_catalog(rows: Iterable[Row], resolver: FieldResolver | None = None) -> list[CatalogProduct]:
    """
    Build catalog products from inventory spreadsheet rows.

    Rows without a product name are skipped; unparsable or negative
    quantities become 0.
    """
    resolver = resolver or FieldResolver()
    numbers = NumberParser()
    products = []
    for row in rows:
        name = resolver.resolve(row, PRODUCT_LABELS)
        if not name:
            continue
        qty = numbers.parse(resolver.resolve(row, QUANTITY_LABELS), fallback=0.0)
        products.append(
            CatalogProduct(
                name=name,
                quantity_on_hand=max(0, int(qty)),
                category=resolver.resolve(row, CATEGORY_LABELS) or None,
                product_type=resolver.resolve(row, TYPE_LABELS) or None,
                image_url=resolver.resolve(row, IMAGE_LABELS) or None,
            )
        )
    return products
