"""
Tests for the import data quality report.

Run with: pytest tests/test_quality.py -v
"""

import pandas as pd

from reconciler.quality import DataQualityChecker, ImportQualityChecker

from conftest import order_row


class TestImportQuality:

    def test_clean_import(self, shopee, index):
        events = [shopee.normalize(order_row(), index)]
        report = ImportQualityChecker().run(events, "orders.csv")
        assert report.issues == []
        assert report.summary() == {
            "source": "orders.csv",
            "total_rows": 1,
            "critical": 0,
            "warnings": 0,
            "info": 0,
        }

    def test_flags_problem_rows(self, shopee, index):
        rows = [
            order_row("A1"),
            order_row("", product="Canvas Tote"),
            order_row("A2", qty="0"),
            order_row("A3", product="Mystery Thing"),
            order_row("A4", status="Cancelled"),
        ]
        report = ImportQualityChecker().run([shopee.normalize(r, index) for r in rows])
        by_type = {i.issue_type: i for i in report.issues}

        assert report.has_critical_issues
        assert by_type["missing"].count == 1
        assert by_type["missing"].sample_values == ["Canvas Tote"]
        assert by_type["invalid_quantity"].sample_values == ["A2"]
        assert by_type["unmatched"].sample_values == ["Mystery Thing"]
        assert by_type["cancelled"].severity == "info"
        assert by_type["missing"].percentage == 20.0

    def test_low_confidence(self, shopee, index):
        # "Canvas Tote Red" shares 2 of 4 tokens with the tote entries
        event = shopee.normalize(order_row(product="Canvas Tote Red"), index)
        report = ImportQualityChecker().run([event])
        assert [i.issue_type for i in report.issues] == ["low_confidence"]
        assert ImportQualityChecker(low_confidence_below=0.5).run([event]).issues == []

    def test_fractional_quantity_flagged(self, shopee, index):
        events = [
            shopee.normalize(order_row("A1", qty="2.5"), index),
            shopee.normalize(order_row("A2", qty="2"), index),
        ]
        report = ImportQualityChecker().run(events)
        assert [i.issue_type for i in report.issues] == ["fractional_quantity"]
        assert report.issues[0].sample_values == ["A1"]

    def test_empty_import(self):
        report = ImportQualityChecker().run([])
        assert report.total_rows == 0
        assert report.issues == []


class TestDataQualityChecker:

    def test_custom_check(self):
        df = pd.DataFrame({"sku": ["A", "", "B", ""]})
        report = (
            DataQualityChecker("sheet")
            .check_mask("sku", lambda d: d["sku"] == "", "missing", "rows have no SKU")
            .run(df)
        )
        issue = report.issues[0]
        assert issue.count == 2
        assert issue.description == "2 rows have no SKU"
        assert report.warning_issues == [issue]
