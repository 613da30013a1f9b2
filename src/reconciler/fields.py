"""
Column resolution for marketplace order exports.

Every platform labels its columns differently, and the same platform
changes its labels between export versions:
- "Order ID" vs "Order Number" vs "order no."
- "Quantity" vs "Qty" vs the misspelled "quanity"
- Extra qualifiers like "Product Name (English)"

The resolver maps a row's actual labels to the value a caller asks for
by an ordered list of label candidates.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from .parsers import NumberParser

Row = Mapping[str, Any]

_NON_LABEL_CHARS = re.compile(r"[^a-z0-9 ]")
_WHITESPACE = re.compile(r"\s+")


def normalize_label(label: str) -> str:
    """Lower-case, collapse whitespace and drop everything outside [a-z0-9 ]."""
    result = _WHITESPACE.sub(" ", str(label).lower())
    return _NON_LABEL_CHARS.sub("", result).strip()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN from pandas
        return ""
    return str(value).strip()


class FieldResolver:
    """
    Resolves canonical fields from rows with arbitrary column labels.

    Matching is exact first, then substring (a row label that contains the
    candidate). There is no edit-distance matching: headers are controlled
    by the platforms and substring matching keeps results predictable.

    Usage:
        resolver = FieldResolver()
        order_id = resolver.resolve(row, ["Order Number", "Order No"])
    """

    def __init__(self):
        # Rows from one export share their labels, so cache per label tuple
        self._label_cache: dict[tuple[str, ...], dict[str, str]] = {}

    def _normalized_labels(self, row: Row) -> dict[str, str]:
        """Map normalized label -> original label (first occurrence wins)."""
        labels = tuple(row.keys())
        cached = self._label_cache.get(labels)
        if cached is not None:
            return cached

        normalized: dict[str, str] = {}
        for label in labels:
            normalized.setdefault(normalize_label(label), label)
        self._label_cache[labels] = normalized
        return normalized

    def resolve(self, row: Row, candidates: list[str], fallback: str = "") -> str:
        """
        Return the first non-blank value for the candidate labels.

        Candidates are tried in order; for each one the exact label is
        preferred over a substring match. Blank cells never win over a
        later candidate.
        """
        normalized = self._normalized_labels(row)

        for candidate in candidates:
            target = normalize_label(candidate)
            if not target:
                continue

            exact = normalized.get(target)
            if exact is not None:
                value = _cell_text(row[exact])
                if value:
                    return value

            for norm_label, label in normalized.items():
                if target in norm_label:
                    value = _cell_text(row[label])
                    if value:
                        return value
                    break

        return fallback

    def resolve_header(self, row: Row, candidate: str) -> str | None:
        """Return the original column label a single candidate resolves to."""
        normalized = self._normalized_labels(row)
        target = normalize_label(candidate)
        if not target:
            return None
        if target in normalized:
            return normalized[target]
        for norm_label, label in normalized.items():
            if target in norm_label:
                return label
        return None

    def get_cell(self, row: Row, candidates: list[str]) -> tuple[str | None, str]:
        """
        Return (label, raw value) for the first candidate with a column.

        Unlike resolve(), a blank value is returned as-is: this is used to
        locate a column for editing rather than to read data.
        """
        for candidate in candidates:
            label = self.resolve_header(row, candidate)
            if label is not None:
                return label, _cell_text(row[label])
        return None, ""


def collect_totals(row: Row, number_parser: NumberParser | None = None) -> list[float]:
    """
    Collect numeric values of every column labelled exactly "total".

    Exports with both a per-line and a per-order "Total" column produce
    duplicated labels (e.g. "Total" and "Total " or "TOTAL"), in column order.
    """
    parser = number_parser or NumberParser()
    totals = []
    for label, value in row.items():
        if normalize_label(label) != "total" or value is None:
            continue
        number = parser.parse(value, fallback=None)
        if number is not None:
            totals.append(number)
    return totals


@dataclass(frozen=True)
class LabelTable:
    """
    Ordered label candidates for each canonical field of an order export.

    Each list is tried in order: put the most specific label first and
    looser synonyms after it.
    """

    order_id: list[str] = field(default_factory=list)
    status: list[str] = field(default_factory=list)
    product: list[str] = field(default_factory=list)
    variation: list[str] = field(default_factory=list)
    quantity: list[str] = field(default_factory=list)
    date: list[str] = field(default_factory=list)
    tax: list[str] = field(default_factory=list)
    item_price: list[str] = field(default_factory=list)
    buyer: list[str] = field(default_factory=list)
    buyer_payment: list[str] = field(default_factory=list)
