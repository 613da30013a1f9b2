# Core reconciliation engine for marketplace order exports
# Platform-specific column vocabularies live in the marketplaces package

from .config import Settings, load_settings
from .fields import FieldResolver, LabelTable, collect_totals, normalize_label
from .parsers import DateParser, NumberParser, ProductNameNormalizer
from .inventory import (
    CatalogProduct,
    InventoryDelta,
    aggregate_deltas,
    apply_deltas,
    rows_to_catalog,
)
from .matching import CatalogIndex, MatchResult, MatchSummary, MatchType, ProductMatcher
from .events import Direction, Exclusion, NormalizedOrderEvent, OrderRowNormalizer
from .ledger import LedgerKey, LedgerOutcome, ReconciliationLedger
from .stores import (
    InMemoryInventoryStore,
    InMemoryLedgerStore,
    InventoryStore,
    JsonInventoryStore,
    JsonLedgerStore,
    LedgerStore,
    PersistenceError,
)
from .pipeline import ImportPipeline, ImportResult
from .views import (
    ReturnEntry,
    TaxEntry,
    complete_orders,
    group_orders,
    merge_return_entries,
    merge_tax_entries,
    return_entries,
    sold_totals,
    tax_entries,
)
from .quality import DataQualityReport, ImportQualityChecker

__all__ = [
    "Settings",
    "load_settings",
    "FieldResolver",
    "LabelTable",
    "collect_totals",
    "normalize_label",
    "DateParser",
    "NumberParser",
    "ProductNameNormalizer",
    "CatalogProduct",
    "InventoryDelta",
    "aggregate_deltas",
    "apply_deltas",
    "rows_to_catalog",
    "CatalogIndex",
    "MatchResult",
    "MatchSummary",
    "MatchType",
    "ProductMatcher",
    "Direction",
    "Exclusion",
    "NormalizedOrderEvent",
    "OrderRowNormalizer",
    "LedgerKey",
    "LedgerOutcome",
    "ReconciliationLedger",
    "InMemoryInventoryStore",
    "InMemoryLedgerStore",
    "InventoryStore",
    "JsonInventoryStore",
    "JsonLedgerStore",
    "LedgerStore",
    "PersistenceError",
    "ImportPipeline",
    "ImportResult",
    "ReturnEntry",
    "TaxEntry",
    "complete_orders",
    "group_orders",
    "merge_return_entries",
    "merge_tax_entries",
    "return_entries",
    "sold_totals",
    "tax_entries",
    "DataQualityReport",
    "ImportQualityChecker",
]
