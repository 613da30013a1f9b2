"""
Row normalization: one export row -> one NormalizedOrderEvent.

This is where the field resolver, value parsers and product matcher meet.
Every per-row anomaly becomes a fallback value or an exclusion reason on
the event; nothing here raises for bad data.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .fields import FieldResolver, LabelTable, Row, collect_totals
from .matching import CatalogIndex, MatchResult, ProductMatcher
from .parsers import DateParser, NumberParser


class Direction(Enum):
    """Inventory effect of an order row."""

    DECREMENT = "dec"  # Sale
    INCREMENT = "inc"  # Return


class Exclusion(Enum):
    """Why a row produces no inventory effect."""

    MISSING_ORDER_ID = "missing_order_id"
    INVALID_QUANTITY = "invalid_quantity"
    UNRESOLVED_PRODUCT = "unresolved_product"
    CANCELLED = "cancelled"


def classify_status(status: str) -> Direction | None:
    """
    Classify a status string.

    "return" anywhere (case-insensitive) is a return. A cancellation
    without a return indicator is informational only and gets None.
    Everything else, including blank, is a sale.
    """
    text = (status or "").lower()
    if "return" in text:
        return Direction.INCREMENT
    if "cancel" in text:
        return None
    return Direction.DECREMENT


@dataclass
class NormalizedOrderEvent:
    """The distilled content of one order row."""

    platform: str
    order_id: str
    product_base: str  # Cleaned base product name
    variation: str  # Cleaned variation name
    quantity: int  # Always >= 0, sign lives in direction
    date: str  # "YYYY-MM-DD" or ""
    status: str
    direction: Direction | None
    match: MatchResult
    raw_product: str = ""
    tax: float = 0.0
    item_price: float = 0.0
    row_total: float = 0.0
    buyer_total: float = 0.0
    buyer: str = ""
    exclusion: Exclusion | None = None
    raw_quantity: float = 0.0  # Parsed cell value before rounding

    @property
    def product_name(self) -> str | None:
        return self.match.matched_product_name

    @property
    def is_return(self) -> bool:
        return self.direction is Direction.INCREMENT

    @property
    def is_cancelled(self) -> bool:
        return self.exclusion is Exclusion.CANCELLED


class OrderRowNormalizer:
    """
    Turns raw rows of one platform into NormalizedOrderEvents.

    The same class serves every platform; only the label table differs.

    Usage:
        normalizer = OrderRowNormalizer("Shopee", SHOPEE_LABELS, matcher)
        index = matcher.build_index(catalog)
        events = [normalizer.normalize(row, index) for row in rows]
    """

    def __init__(
        self,
        platform: str,
        labels: LabelTable,
        matcher: ProductMatcher,
        resolver: FieldResolver | None = None,
    ):
        self.platform = platform
        self.labels = labels
        self.matcher = matcher
        self.resolver = resolver or FieldResolver()
        self.numbers = NumberParser()
        self.dates = DateParser()

    def normalize(self, row: Row, catalog: CatalogIndex) -> NormalizedOrderEvent:
        resolve = self.resolver.resolve
        names = self.matcher.names

        order_id = resolve(row, self.labels.order_id)
        status = resolve(row, self.labels.status)
        raw_product = resolve(row, self.labels.product)
        base = names.clean_name(raw_product)
        variation = names.clean_name(resolve(row, self.labels.variation))
        match = self.matcher.resolve(base, variation, catalog)

        raw_qty = self.numbers.parse(resolve(row, self.labels.quantity, "0"), fallback=0.0)
        # Round half up to whole units; the quality report flags rounded rows
        quantity = math.floor(raw_qty + 0.5) if raw_qty > 0 else 0

        item_price = self.numbers.parse(resolve(row, self.labels.item_price, "0"), fallback=0.0)
        totals = collect_totals(row, self.numbers)
        # Second "Total" column is the line total when an export has two
        if len(totals) > 1:
            row_total = totals[1]
        elif totals:
            row_total = totals[0]
        else:
            row_total = item_price * quantity

        direction = classify_status(status)

        exclusion = None
        if not order_id:
            exclusion = Exclusion.MISSING_ORDER_ID
        elif not match.matched_product_name:
            exclusion = Exclusion.UNRESOLVED_PRODUCT
        elif quantity <= 0:
            exclusion = Exclusion.INVALID_QUANTITY
        elif direction is None:
            exclusion = Exclusion.CANCELLED

        return NormalizedOrderEvent(
            platform=self.platform,
            order_id=order_id,
            product_base=base,
            variation=variation,
            quantity=quantity,
            date=self.dates.parse(resolve(row, self.labels.date)),
            status=status,
            direction=direction,
            match=match,
            raw_product=raw_product,
            tax=self.numbers.parse(resolve(row, self.labels.tax, "0"), fallback=0.0),
            item_price=item_price,
            row_total=row_total,
            buyer_total=self.numbers.parse(
                resolve(row, self.labels.buyer_payment, "0"), fallback=0.0
            ),
            buyer=resolve(row, self.labels.buyer),
            raw_quantity=raw_qty,
            exclusion=exclusion,
        )
