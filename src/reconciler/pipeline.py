"""
Import pipeline - one order export batch at a time.

    rows -> events (fields, parsers, matcher)
         -> ledger (idempotency, direction)
         -> delta fold (new snapshot)
         -> persistence (snapshot, then ledger keys)

Everything up to persistence is synchronous and in memory. Batches are
serialized with a lock so the ledger check-and-insert never interleaves.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .config import Settings
from .events import NormalizedOrderEvent, OrderRowNormalizer
from .fields import FieldResolver, LabelTable, Row
from .inventory import CatalogProduct, apply_deltas, unknown_delta_products
from .ledger import LedgerOutcome, ReconciliationLedger
from .matching import MatchSummary, ProductMatcher
from .stores import InventoryStore, LedgerStore, PersistenceError
from .views import ReturnEntry, TaxEntry, return_entries, tax_entries

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Everything one batch produced."""

    platform: str
    events: list[NormalizedOrderEvent]
    outcome: LedgerOutcome
    snapshot: list[CatalogProduct]
    match_summary: MatchSummary
    dropped_products: list[str] = field(default_factory=list)  # Deltas with no catalog entry
    tax_entries: list[TaxEntry] = field(default_factory=list)
    return_entries: list[ReturnEntry] = field(default_factory=list)

    @property
    def deltas(self):
        return self.outcome.deltas

    def summary(self) -> dict:
        return {
            "platform": self.platform,
            "rows": len(self.events),
            "applied": self.outcome.applied,
            "skipped": self.outcome.skipped,
            "excluded": self.outcome.excluded,
            "cancelled": self.outcome.cancelled,
            "products_changed": len(self.outcome.deltas) - len(self.dropped_products),
            "dropped_products": len(self.dropped_products),
            "tax_entries": len(self.tax_entries),
            "return_entries": len(self.return_entries),
            **{f"match_{k}": v for k, v in self.match_summary.summary().items()},
        }


class ImportPipeline:
    """
    Runs order-export batches through the reconciliation engine.

    State (ledger keys, catalog snapshot) is loaded from the stores on the
    first batch and kept in memory; each batch ends with a write of both.

    Usage:
        pipeline = ImportPipeline(ledger_store, inventory_store, labels)
        result = await pipeline.import_batch(rows, "Shopee")
    """

    def __init__(
        self,
        ledger_store: LedgerStore,
        inventory_store: InventoryStore,
        labels: Mapping[str, LabelTable],
        settings: Settings | None = None,
    ):
        self.ledger_store = ledger_store
        self.inventory_store = inventory_store
        self.labels = dict(labels)
        self.settings = settings or Settings()
        self.matcher = ProductMatcher(self.settings)
        self.resolver = FieldResolver()
        self.ledger = ReconciliationLedger()
        self.snapshot: list[CatalogProduct] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """(Re)load ledger keys and catalog from the stores."""
        self.ledger.restore(await self.ledger_store.load_keys())
        self.snapshot = await self.inventory_store.load_snapshot()
        self._loaded = True
        logger.info(
            "Loaded %d ledger keys and %d catalog products",
            len(self.ledger),
            len(self.snapshot),
        )

    def normalizer_for(self, platform: str) -> OrderRowNormalizer:
        # Accept str-valued enums; ledger keys store the plain value
        platform = getattr(platform, "value", platform)
        labels = self.labels.get(platform)
        if labels is None:
            raise ValueError(f"Unknown platform: {platform!r}")
        return OrderRowNormalizer(str(platform), labels, self.matcher, self.resolver)

    def normalize(self, rows: Iterable[Row], platform: str) -> list[NormalizedOrderEvent]:
        """Normalize rows against the current snapshot without applying them."""
        normalizer = self.normalizer_for(platform)
        index = self.matcher.build_index(self.snapshot)
        return [normalizer.normalize(row, index) for row in rows]

    async def _persist(
        self,
        platform: str,
        new_snapshot: list[CatalogProduct],
        previous_snapshot: list[CatalogProduct],
        previous_keys: frozenset[str],
    ) -> None:
        """
        Write the snapshot, then the ledger keys.

        Stock must never be stored without the keys that produced it: if the
        key write fails after the snapshot write succeeded, the previous
        snapshot is written back before PersistenceError is raised.
        """
        snapshot_saved = False
        try:
            await self.inventory_store.save_snapshot(new_snapshot)
            snapshot_saved = True
            await self.ledger_store.save_keys(self.ledger.keys())
        except Exception as exc:
            self.ledger.restore(previous_keys)
            self.snapshot = previous_snapshot
            logger.exception("Persisting %s batch failed", platform)
            if snapshot_saved:
                try:
                    await self.inventory_store.save_snapshot(previous_snapshot)
                except Exception:
                    logger.exception(
                        "Restoring the %s snapshot failed; stored stock includes "
                        "a batch whose ledger keys were not saved",
                        platform,
                    )
            raise PersistenceError(f"Failed to persist {platform} import") from exc

    async def import_batch(self, rows: Iterable[Row], platform: str) -> ImportResult:
        """
        Import one batch of rows for a platform.

        Raises:
            ValueError: unknown platform
            PersistenceError: a store write failed; in-memory state is
                rolled back to before the batch
        """
        async with self._lock:
            if not self._loaded:
                await self.load()

            platform = getattr(platform, "value", platform)
            events = self.normalize(rows, platform)

            previous_keys = self.ledger.keys()
            previous_snapshot = self.snapshot

            outcome = self.ledger.apply_events(events)
            dropped = unknown_delta_products(previous_snapshot, outcome.deltas)
            new_snapshot = apply_deltas(previous_snapshot, outcome.deltas)
            self.snapshot = new_snapshot

            if dropped:
                logger.warning(
                    "%d product(s) not in catalog, stock unchanged: %s",
                    len(dropped),
                    ", ".join(dropped[:5]),
                )

            if outcome.applied:
                await self._persist(platform, new_snapshot, previous_snapshot, previous_keys)

            summary = MatchSummary()
            for event in events:
                summary.add(event.match, self.settings.low_confidence_warning)

            result = ImportResult(
                platform=platform,
                events=events,
                outcome=outcome,
                snapshot=new_snapshot,
                match_summary=summary,
                dropped_products=dropped,
                tax_entries=tax_entries(events),
                return_entries=return_entries(events),
            )
            logger.info(
                "Imported %s batch: %d rows, %d applied, %d skipped, %d excluded",
                platform,
                len(events),
                outcome.applied,
                outcome.skipped,
                outcome.excluded,
            )
            return result
