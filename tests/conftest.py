"""
Shared fixtures for the reconciliation test suite.

Provides:
- A small retail catalog
- A Shopee row normalizer bound to that catalog
- order_row() for building export rows with Shopee-style labels
"""

import pytest

from reconciler.config import Settings
from reconciler.events import OrderRowNormalizer
from reconciler.inventory import CatalogProduct
from reconciler.matching import ProductMatcher
from marketplaces.profiles import SHOPEE_LABELS


def order_row(order_id="A1", product="Red Mug", qty="1", status="Completed", **extra):
    """Build a row the way a Shopee export labels its columns."""
    row = {
        "Order ID": order_id,
        "Product Name": product,
        "Variation Name": extra.pop("variation", ""),
        "Quantity": qty,
        "Status": status,
    }
    row.update(extra)
    return row


@pytest.fixture
def catalog():
    return [
        CatalogProduct(name="Red Mug", quantity_on_hand=10),
        CatalogProduct(name="Canvas Tote Fuchsia", quantity_on_hand=5),
        CatalogProduct(name="Canvas Tote Black", quantity_on_hand=7),
        CatalogProduct(name="Linen Shirt Off White", quantity_on_hand=3),
    ]


@pytest.fixture
def matcher():
    return ProductMatcher(Settings())


@pytest.fixture
def index(matcher, catalog):
    return matcher.build_index(catalog)


@pytest.fixture
def shopee(matcher):
    return OrderRowNormalizer("Shopee", SHOPEE_LABELS, matcher)
