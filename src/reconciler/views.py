"""
Derived order views: tax, returns, sold totals and order grouping.

These are thin read-side views over normalized events. They never touch
inventory or the ledger; the pipeline hands their output to whatever
persists tax and returns records.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterable, Literal

import pandas as pd
from pydantic import BaseModel, Field

from .events import NormalizedOrderEvent
from .fields import FieldResolver, LabelTable, Row

UNKNOWN_ORDER = "Unknown"


def _new_id() -> str:
    return uuid.uuid4().hex


class TaxEntry(BaseModel):
    """Shop tax owed for one order."""

    id: str = Field(default_factory=_new_id)
    date: str = ""
    order_id: str
    type: Literal["ShopTax"] = "ShopTax"
    amount: float
    platform: str


class ReturnEntry(BaseModel):
    """A returned order line, for the returns register."""

    id: str = Field(default_factory=_new_id)
    date: str = ""
    order_id: str
    product: str
    platform: str
    status: str
    qty: int = 1


def events_to_frame(events: Iterable[NormalizedOrderEvent]) -> pd.DataFrame:
    """Flatten events into a DataFrame for aggregation and quality checks."""
    records = [
        {
            "platform": e.platform,
            "order_id": e.order_id,
            "product": e.raw_product,
            "product_base": e.product_base,
            "variation": e.variation,
            "matched_product": e.product_name,
            "match_type": e.match.match_type.value,
            "confidence": e.match.confidence,
            "linked": e.match.is_linked,
            "quantity": e.quantity,
            "raw_quantity": e.raw_quantity,
            "date": e.date,
            "status": e.status,
            "direction": e.direction.value if e.direction else None,
            "exclusion": e.exclusion.value if e.exclusion else None,
            "tax": e.tax,
            "item_price": e.item_price,
            "row_total": e.row_total,
            "buyer_total": e.buyer_total,
            "buyer": e.buyer,
        }
        for e in events
    ]
    columns = [
        "platform", "order_id", "product", "product_base", "variation",
        "matched_product", "match_type", "confidence", "linked", "quantity", "raw_quantity",
        "date", "status", "direction", "exclusion", "tax", "item_price",
        "row_total", "buyer_total", "buyer",
    ]
    return pd.DataFrame(records, columns=columns)


def tax_entries(events: Iterable[NormalizedOrderEvent]) -> list[TaxEntry]:
    """
    Sum tax per order.

    Returned lines and rows without an order id or with zero tax are
    skipped. The first non-empty date of an order is kept.
    """
    df = events_to_frame(events)
    taxed = df[
        (df["order_id"] != "")
        & ~df["status"].str.contains("return", case=False, na=False)
        & (df["tax"] != 0)
    ].copy()
    if len(taxed) == 0:
        return []

    taxed["date"] = taxed["date"].replace("", pd.NA)
    grouped = (
        taxed.groupby("order_id", sort=False)
        .agg(amount=("tax", "sum"), date=("date", "first"), platform=("platform", "first"))
        .reset_index()
    )

    return [
        TaxEntry(
            order_id=r.order_id,
            amount=float(r.amount),
            date="" if pd.isna(r.date) else str(r.date),
            platform=r.platform,
        )
        for r in grouped.itertuples(index=False)
    ]


def merge_tax_entries(existing: list[TaxEntry], new: list[TaxEntry]) -> list[TaxEntry]:
    """
    Upsert tax entries by order id.

    A re-imported order replaces the amount; date and platform are only
    replaced when the new entry has them.
    """
    merged = [entry.model_copy() for entry in existing]
    positions = {entry.order_id: i for i, entry in enumerate(merged)}
    for entry in new:
        idx = positions.get(entry.order_id)
        if idx is None:
            positions[entry.order_id] = len(merged)
            merged.append(entry)
            continue
        current = merged[idx]
        merged[idx] = current.model_copy(
            update={
                "amount": entry.amount,
                "date": entry.date or current.date,
                "platform": entry.platform or current.platform,
            }
        )
    return merged


def return_entries(events: Iterable[NormalizedOrderEvent]) -> list[ReturnEntry]:
    """One entry per returned line that has an order id."""
    entries = []
    for event in events:
        if not event.order_id or "return" not in event.status.lower():
            continue
        entries.append(
            ReturnEntry(
                date=event.date,
                order_id=event.order_id,
                product=event.raw_product,
                platform=event.platform,
                status=event.status,
                qty=event.quantity or 1,
            )
        )
    return entries


def merge_return_entries(existing: list[ReturnEntry], new: list[ReturnEntry]) -> list[ReturnEntry]:
    """Append entries for orders not already in the register."""
    merged = list(existing)
    seen = {entry.order_id for entry in merged}
    for entry in new:
        if entry.order_id in seen:
            continue
        seen.add(entry.order_id)
        merged.append(entry)
    return merged


def sold_totals(events: Iterable[NormalizedOrderEvent]) -> dict[str, int]:
    """
    Units sold per product, excluding cancelled and returned lines.

    Unmatched products are counted under their raw name.
    """
    df = events_to_frame(events)
    sold = df[
        df["matched_product"].notna()
        & (df["matched_product"] != "")
        & ~df["status"].str.contains("cancel|return", case=False, na=False)
    ]
    if len(sold) == 0:
        return {}
    totals = sold.groupby("matched_product", sort=False)["quantity"].sum()
    return {name: int(qty) for name, qty in totals.items()}


@dataclass
class OrderSummary:
    """All lines of one order with order-level figures."""

    order_id: str
    date: str
    status: str
    total: float
    buyer: str
    items: list[NormalizedOrderEvent] = field(default_factory=list)


@dataclass
class OrderGrouping:
    orders: list[OrderSummary] = field(default_factory=list)
    unknown_count: int = 0  # Lines before the first order id


def group_orders(events: Iterable[NormalizedOrderEvent]) -> OrderGrouping:
    """
    Group lines into orders, in file order.

    Exports list an order's extra lines with a blank order id, so a blank
    id inherits the last id seen. Lines before any id are "Unknown" and
    only counted.
    """
    grouping = OrderGrouping()
    by_id: dict[str, list[NormalizedOrderEvent]] = {}
    last_order_id = ""
    for event in events:
        order_id = event.order_id or last_order_id or UNKNOWN_ORDER
        if event.order_id:
            last_order_id = event.order_id
        if order_id == UNKNOWN_ORDER:
            grouping.unknown_count += 1
            continue
        by_id.setdefault(order_id, []).append(event)

    for order_id, items in by_id.items():
        line_sum = sum(
            i.row_total if i.row_total > 0 else i.item_price * i.quantity for i in items
        )
        buyer_totals = [i.buyer_total for i in items if i.buyer_total > 0]
        total = line_sum or (max(buyer_totals) if buyer_totals else 0.0)
        grouping.orders.append(
            OrderSummary(
                order_id=order_id,
                date=next((i.date for i in items if i.date), ""),
                status=next((i.status for i in items if i.status), ""),
                total=total,
                buyer=next((i.buyer for i in items if i.buyer), ""),
                items=items,
            )
        )
    return grouping


def complete_orders(
    order_rows: Iterable[Row],
    cash_flow_rows: Iterable[Row],
    labels: LabelTable,
    resolver: FieldResolver | None = None,
) -> list[dict]:
    """
    Mark orders paid out in a cash-flow statement as Completed.

    The status is written to the row's own status column, or to a new
    "Status" column when the export has none. Returns new row dicts; rows
    whose order id is not in the statement are copied unchanged.
    """
    resolver = resolver or FieldResolver()
    paid = {resolver.resolve(r, labels.order_id) for r in cash_flow_rows}
    paid.discard("")

    result = []
    for row in order_rows:
        updated = dict(row)
        if paid and resolver.resolve(row, labels.order_id) in paid:
            label, _ = resolver.get_cell(row, labels.status)
            updated[label or "Status"] = "Completed"
        result.append(updated)
    return result
