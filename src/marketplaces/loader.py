"""
Loader for marketplace order exports.

Handles the file side of an import, which the engine treats as external:
- Shopee/TikTok order exports (XLSX or CSV) -> rows
- Inventory sheets -> catalog products
- Shopee cash-flow statements, whose header sits below a 17-row preamble

To support a new export layout:
1. Add or extend its LabelTable in profiles.py
2. If the header isn't on the first row, pass header_row
3. The engine in reconciler/ is reused as-is
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import pandas as pd

from reconciler.config import Settings
from reconciler.events import NormalizedOrderEvent
from reconciler.inventory import CatalogProduct, rows_to_catalog
from reconciler.pipeline import ImportPipeline, ImportResult
from reconciler.quality import DataQualityReport, ImportQualityChecker
from reconciler.views import complete_orders

from .profiles import Platform, get_labels

logger = logging.getLogger(__name__)

# Shopee cash-flow statements start their table on row 18
CASH_FLOW_HEADER_ROW = 17


@dataclass
class LoadedImport:
    """Result of importing files plus its quality report."""

    result: ImportResult
    quality_report: DataQualityReport


def read_rows(path: str | Path, header_row: int = 0) -> list[dict]:
    """
    Read the first sheet of an export into row dicts.

    Cells are kept as found (text, numbers, dates); empty cells become "".
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Export file not found: {path}")

    # Headers are read as a data row: pandas would rename a repeated
    # "Total" to "Total.1", which no longer resolves as a total column
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        df = pd.read_excel(path, sheet_name=0, header=None, skiprows=header_row, dtype=object)
    elif suffix == ".csv":
        df = pd.read_csv(
            path,
            header=None,
            skiprows=header_row,
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
        )
    else:
        raise ValueError(f"Unsupported file format: {suffix}")

    if len(df) == 0:
        return []

    labels = _unique_labels(df.iloc[0].tolist())
    df = df.iloc[1:].dropna(how="all")
    df.columns = labels
    df = df.astype(object).where(df.notna(), "")
    return df.to_dict(orient="records")


def _unique_labels(raw_labels: list) -> list[str]:
    """
    Trimmed header labels, with repeats padded by trailing spaces.

    "Total", "Total" becomes "Total", "Total " so both columns survive as
    dict keys and still normalize to the same label.
    """
    labels: list[str] = []
    seen: set[str] = set()
    for raw in raw_labels:
        label = "" if pd.isna(raw) else str(raw).strip()
        while label in seen:
            label += " "
        seen.add(label)
        labels.append(label)
    return labels


class MarketplaceLoader:
    """
    Loads export files for a platform and runs them through a pipeline.

    Usage:
        loader = MarketplaceLoader(settings)
        loaded = await loader.import_files(pipeline, ["orders.xlsx"], "shopee")
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.quality_checker = ImportQualityChecker(self.settings.low_confidence_warning)

    def read_catalog(self, path: str | Path) -> list[CatalogProduct]:
        """Read an inventory sheet into catalog products."""
        products = rows_to_catalog(read_rows(path))
        logger.info("Read %d catalog products from %s", len(products), path)
        return products

    def read_orders(self, paths: Iterable[str | Path]) -> list[dict]:
        """Concatenate the rows of several export files, in order."""
        rows: list[dict] = []
        for path in paths:
            file_rows = read_rows(path)
            logger.info("Read %d rows from %s", len(file_rows), path)
            rows.extend(file_rows)
        return rows

    def apply_cash_flow(
        self, order_rows: list[dict], cash_flow_path: str | Path, platform: Platform | str
    ) -> list[dict]:
        """Mark orders that appear in a cash-flow statement as Completed."""
        statement = read_rows(cash_flow_path, header_row=CASH_FLOW_HEADER_ROW)
        return complete_orders(order_rows, statement, get_labels(platform))

    def check_quality(
        self, events: list[NormalizedOrderEvent], platform: Platform | str
    ) -> DataQualityReport:
        name = platform.value if isinstance(platform, Platform) else str(platform)
        return self.quality_checker.run(events, source_name=f"{name} orders")

    async def import_files(
        self,
        pipeline: ImportPipeline,
        paths: Iterable[str | Path],
        platform: Platform | str,
        cash_flow_path: str | Path | None = None,
    ) -> LoadedImport:
        """Read export files and import them as one batch."""
        if not isinstance(platform, Platform):
            platform = Platform.parse(platform)

        rows = self.read_orders(paths)
        if cash_flow_path is not None:
            rows = self.apply_cash_flow(rows, cash_flow_path, platform)

        result = await pipeline.import_batch(rows, platform.value)
        return LoadedImport(
            result=result,
            quality_report=self.check_quality(result.events, platform),
        )
