"""
Data quality reporting for order imports.

Per-row anomalies never stop an import; they become fallbacks or
exclusions. This module makes them visible: how many rows had no order
id, which products didn't match, which matches were low confidence.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

import pandas as pd

from .events import Exclusion, NormalizedOrderEvent
from .matching import MatchType
from .views import events_to_frame


@dataclass
class DataQualityIssue:
    """A single data quality issue found in an import."""

    column: str
    issue_type: str  # e.g., "missing", "unmatched", "low_confidence", "cancelled"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Summary report of data quality for a single import."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


class DataQualityChecker:
    """
    Runs check functions over a DataFrame and collects their issues.

    Extend by adding custom checks via add_check().
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def check_mask(
        self,
        column: str,
        mask_fn: Callable[[pd.DataFrame], pd.Series],
        issue_type: str,
        description: str,
        severity: str = "warning",
        sample_column: str | None = None,
    ) -> "DataQualityChecker":
        """Add a check that flags the rows selected by mask_fn."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if len(df) == 0:
                return []
            mask = mask_fn(df)
            count = int(mask.sum())
            if count == 0:
                return []
            samples = (
                df.loc[mask, sample_column or column].drop_duplicates().head(5).tolist()
            )
            return [
                DataQualityIssue(
                    column=column,
                    issue_type=issue_type,
                    severity=severity,
                    count=count,
                    percentage=(count / len(df)) * 100,
                    sample_values=samples,
                    description=f"{count:,} {description}",
                )
            ]

        self._checks.append(check)
        return self

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run all checks and return a quality report."""
        all_issues = []
        for check_fn in self._checks:
            all_issues.extend(check_fn(df))

        return DataQualityReport(
            source_name=self.source_name, total_rows=len(df), issues=all_issues
        )


class ImportQualityChecker:
    """
    Standard checks for a normalized order import.

    Severity reflects the effect on stock: rows that can't be deduplicated
    or linked to the catalog never move inventory.
    """

    def __init__(self, low_confidence_below: float = 0.6):
        self.low_confidence_below = low_confidence_below

    def build(self, source_name: str) -> DataQualityChecker:
        threshold = self.low_confidence_below
        return (
            DataQualityChecker(source_name)
            .check_mask(
                "order_id",
                lambda d: d["exclusion"] == Exclusion.MISSING_ORDER_ID.value,
                "missing",
                "rows have no order id and were not applied to stock",
                severity="critical",
                sample_column="product",
            )
            .check_mask(
                "quantity",
                lambda d: d["exclusion"] == Exclusion.INVALID_QUANTITY.value,
                "invalid_quantity",
                "rows have a missing or non-positive quantity",
                sample_column="order_id",
            )
            .check_mask(
                "quantity",
                lambda d: (d["raw_quantity"] > 0) & (d["raw_quantity"] != d["quantity"]),
                "fractional_quantity",
                "rows had a fractional quantity rounded to whole units",
                sample_column="order_id",
            )
            .check_mask(
                "product",
                lambda d: d["match_type"] == MatchType.UNMATCHED.value,
                "unmatched",
                "rows matched no catalog product",
                sample_column="product_base",
            )
            .check_mask(
                "product",
                lambda d: d["linked"] & (d["confidence"] < threshold),
                "low_confidence",
                f"rows matched with confidence below {threshold:.0%}",
                sample_column="product_base",
            )
            .check_mask(
                "status",
                lambda d: d["exclusion"] == Exclusion.CANCELLED.value,
                "cancelled",
                "cancelled rows without a return left stock unchanged",
                severity="info",
                sample_column="order_id",
            )
        )

    def run(
        self, events: Iterable[NormalizedOrderEvent], source_name: str = "Order import"
    ) -> DataQualityReport:
        return self.build(source_name).run(events_to_frame(events))
