"""
Reconciliation ledger - applies each inventory effect exactly once.

Order exports overlap: the same order appears in this week's and last
week's download, and users re-import files. The ledger remembers every
(platform, order, product, variation, direction) it has applied so a
repeated row is a no-op.

Sale and return of the same line are different keys, so a return never
cancels out the record of the original sale.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .events import Direction, NormalizedOrderEvent, OrderRowNormalizer
from .fields import Row
from .inventory import InventoryDelta, aggregate_deltas
from .matching import CatalogIndex

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"
ESCAPE = "\\"


def _escape(part: str) -> str:
    return part.replace(ESCAPE, ESCAPE * 2).replace(KEY_SEPARATOR, ESCAPE + KEY_SEPARATOR)


def _split_key(raw: str) -> list[str]:
    """Split on unescaped separators and unescape each part."""
    parts = []
    current = []
    chars = iter(raw)
    for char in chars:
        if char == ESCAPE:
            current.append(next(chars, ""))
        elif char == KEY_SEPARATOR:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


@dataclass(frozen=True)
class LedgerKey:
    """Idempotency token for one inventory effect."""

    platform: str
    order_id: str
    product_name: str
    variation: str
    direction: Direction

    def encode(self) -> str:
        """
        Stored form: platform|orderId|productName|variationName|dec-or-inc.

        A "|" or "\\" inside a field is escaped with a backslash, so keys
        without either character are stored unchanged.
        """
        parts = [self.platform, self.order_id, self.product_name, self.variation]
        return KEY_SEPARATOR.join([_escape(p) for p in parts] + [self.direction.value])

    @classmethod
    def decode(cls, raw: str) -> "LedgerKey":
        """Parse a stored key. Raises ValueError on malformed input."""
        parts = _split_key(raw)
        if len(parts) != 5:
            raise ValueError(f"Malformed ledger key: {raw!r}")
        platform, order_id, product_name, variation, direction = parts
        return cls(platform, order_id, product_name, variation, Direction(direction))

    @classmethod
    def for_event(cls, event: NormalizedOrderEvent) -> "LedgerKey | None":
        """Key for an event, or None when the event has no inventory effect."""
        if event.exclusion is not None or event.direction is None:
            return None
        return cls(
            platform=event.platform,
            order_id=event.order_id,
            product_name=event.product_name or "",
            variation=event.variation,
            direction=event.direction,
        )


@dataclass
class LedgerOutcome:
    """What one batch did to the ledger."""

    deltas: list[InventoryDelta] = field(default_factory=list)  # Summed per product
    applied: int = 0
    skipped: int = 0  # Already in the ledger
    excluded: int = 0  # No order id, no product, or no quantity
    cancelled: int = 0  # Cancelled without a return indicator
    new_keys: list[str] = field(default_factory=list)


class ReconciliationLedger:
    """
    Append-only set of applied ledger keys.

    Keys are never removed. The set is loaded from a store before a batch
    and saved after it; the ledger itself does no I/O.
    """

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: set[str] = set(keys)

    def __contains__(self, key: LedgerKey | str) -> bool:
        encoded = key.encode() if isinstance(key, LedgerKey) else key
        return encoded in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    def restore(self, keys: Iterable[str]) -> None:
        """Replace the key set (used to roll back a batch that failed to persist)."""
        self._keys = set(keys)

    def apply(self, event: NormalizedOrderEvent) -> InventoryDelta | None:
        """
        Record the event's key and return its delta, or None.

        None means the event has no inventory effect (excluded, cancelled)
        or its key was applied before.
        """
        key = LedgerKey.for_event(event)
        if key is None:
            logger.debug(
                "Row excluded (%s): order %r product %r",
                event.exclusion.value if event.exclusion else "no direction",
                event.order_id,
                event.product_name,
            )
            return None

        encoded = key.encode()
        if encoded in self._keys:
            logger.debug("Skipping already applied key %s", encoded)
            return None

        self._keys.add(encoded)
        signed = -event.quantity if key.direction is Direction.DECREMENT else event.quantity
        return InventoryDelta(product_name=key.product_name, signed_quantity=signed)

    def apply_row(
        self, row: Row, normalizer: OrderRowNormalizer, catalog: CatalogIndex
    ) -> InventoryDelta | None:
        """Normalize a raw row for the normalizer's platform and apply it."""
        return self.apply(normalizer.normalize(row, catalog))

    def apply_events(self, events: Iterable[NormalizedOrderEvent]) -> LedgerOutcome:
        """Apply a whole batch and sum the resulting deltas per product."""
        outcome = LedgerOutcome()
        raw_deltas = []
        for event in events:
            if event.exclusion is not None:
                if event.is_cancelled:
                    outcome.cancelled += 1
                else:
                    outcome.excluded += 1
                continue

            delta = self.apply(event)
            if delta is None:
                outcome.skipped += 1
                continue

            outcome.applied += 1
            outcome.new_keys.append(LedgerKey.for_event(event).encode())
            raw_deltas.append(delta)

        outcome.deltas = aggregate_deltas(raw_deltas)
        return outcome
