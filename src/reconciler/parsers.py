"""
Reusable parsers for marketplace export values.

These parsers handle the messy reality of order exports:
- Money columns with currency symbols, thousands separators and
  accounting-style negatives "(1,234.50)"
- Dates as spreadsheet serials or in several textual formats
- Free-text product names with SKU numbers, notes and variation suffixes
"""

import math
import numbers
import re
from datetime import date, timedelta
from typing import Any

import pandas as pd

# Spreadsheet day 0. Using 1899-12-30 rather than 1900-01-01 absorbs the
# phantom 1900-02-29 of the classic spreadsheet date system.
SPREADSHEET_EPOCH = date(1899, 12, 30)

EMPTY_DATE_DISPLAY = "—"

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


class NumberParser:
    """
    Parses numeric cells from marketplace exports.

    Handles:
    - "₱1,500.00" -> 1500.0 (currency symbols and separators stripped)
    - "(250.00)" -> -250.0 (accounting negatives)
    - "−12" / "–12" / "—12" -> -12.0 (Unicode minus variants)
    """

    MINUS_VARIANTS = re.compile("[−–—]")
    NON_NUMERIC = re.compile(r"[^0-9.\-]")
    PARENTHESIZED = re.compile(r"^\(.*\)$")

    def parse(self, value: Any, fallback: float | None = 0.0) -> float | None:
        """Parse a single cell, returning fallback when it isn't a number."""
        if isinstance(value, bool):
            return fallback
        if isinstance(value, numbers.Real):
            if _is_missing(value):
                return fallback
            return float(value)
        if _is_missing(value):
            return fallback

        raw = str(value).strip()
        negative = bool(self.PARENTHESIZED.match(raw))
        cleaned = self.NON_NUMERIC.sub("", self.MINUS_VARIANTS.sub("-", raw))
        if not cleaned:
            return fallback

        try:
            number = float(cleaned)
        except ValueError:
            return fallback
        if number != number or number in (float("inf"), float("-inf")):
            return fallback

        if negative and number > 0:
            number = -number
        return number

    def parse_series(self, series: pd.Series, fallback: float | None = 0.0) -> pd.Series:
        """Parse an entire pandas Series of numeric cells."""
        return series.apply(lambda v: self.parse(v, fallback=fallback))


class DateParser:
    """
    Date normalizer that handles the formats seen in marketplace exports.

    Output is always a zero-padded "YYYY-MM-DD" string (or "" for empty
    input), so dates sort and compare as plain strings.

    To extend: add (pattern, builder) pairs to PATTERNS. The first pattern
    that matches wins, so keep the most specific ones first.
    """

    PATTERNS = [
        # ISO: 2024-07-25, 2024/07/25 (time suffix ignored)
        ("ymd", re.compile(r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})")),
        # Day first: 25-07-2024, 25/07/2024
        ("dmy", re.compile(r"(\d{1,2})[-/](\d{1,2})[-/](\d{4})")),
        # 25 Jul 2024, 25 July 2024
        ("d_mon_y", re.compile(r"(\d{1,2})\s+([A-Za-z]{3,})\s+(\d{4})")),
        # Jul 25, 2024 / July 25 2024
        ("mon_d_y", re.compile(r"([A-Za-z]{3,})\s+(\d{1,2}),?\s+(\d{4})")),
    ]

    def __init__(self):
        self._cache: dict[str, str] = {}

    def from_serial(self, serial: float) -> str:
        """Convert a spreadsheet day serial to "YYYY-MM-DD"."""
        day = SPREADSHEET_EPOCH + timedelta(days=math.floor(serial + 0.5))
        return day.isoformat()

    def parse(self, value: Any) -> str:
        """Normalize a date cell to "YYYY-MM-DD"."""
        if _is_missing(value) or isinstance(value, bool):
            return ""
        if isinstance(value, numbers.Real):
            try:
                return self.from_serial(value)
            except (ValueError, OverflowError):
                return ""
        if isinstance(value, date):
            return value.strftime("%Y-%m-%d")

        text = str(value).strip()
        if not text:
            return ""
        if text in self._cache:
            return self._cache[text]

        result = self._parse_text(text)
        self._cache[text] = result
        return result

    def _parse_text(self, text: str) -> str:
        try:
            return self.from_serial(float(text))
        except (ValueError, OverflowError):
            pass

        for kind, pattern in self.PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            parts = self._build(kind, match)
            if parts is not None:
                year, month, day = parts
                return f"{year:04d}-{month:02d}-{day:02d}"

        # Unrecognized: keep the date-looking head of "2024.03.15 10:22"
        return text.split()[0]

    @staticmethod
    def _build(kind: str, match: re.Match) -> tuple[int, int, int] | None:
        if kind == "ymd":
            return int(match.group(1)), int(match.group(2)), int(match.group(3))

        if kind == "dmy":
            first, second = int(match.group(1)), int(match.group(2))
            year = int(match.group(3))
            # Day-first unless the middle field can't be a month (3/15/2024)
            if second > 12 and first <= 12:
                return year, first, second
            return year, second, first

        if kind == "d_mon_y":
            month = MONTHS.get(match.group(2)[:3].lower())
            if month is None:
                return None
            return int(match.group(3)), month, int(match.group(1))

        month = MONTHS.get(match.group(1)[:3].lower())
        if month is None:
            return None
        return int(match.group(3)), month, int(match.group(2))

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of dates."""
        return series.apply(self.parse)

    def format_display(self, value: Any) -> str:
        """Render "DD/MM/YYYY" for display, or an em dash when empty."""
        iso = self.parse(value)
        if not iso:
            return EMPTY_DATE_DISPLAY
        parts = re.split(r"[-/]", iso)
        if len(parts) == 3:
            year, month, day = parts
            return f"{day}/{month}/{year}"
        return iso


class ProductNameNormalizer:
    """
    Normalizes free-text product and variation names for matching.

    Marketplace titles carry noise the catalog doesn't:
    - SKU numbers and "#" markers: "Tote Bag #12" -> "Tote Bag"
    - Annotations after separators: "Tote Bag - Free Gift" -> "Tote Bag"
    - Spelling variants: "fuschia" -> "fuchsia"

    Numbers attached to letters or hyphens ("500ml", "A4", "2-pack") are
    meaningful and kept.
    """

    DEFAULT_SYNONYMS = {
        "fuschia": "fuchsia",
        "off-white": "off white",
        "offwhite": "off white",
    }

    STANDALONE_NUMBER = re.compile(r"(?<![A-Za-z0-9-])\d+(?![A-Za-z0-9-])")
    NON_CANONICAL = re.compile(r"[^a-z0-9 ]+")
    MULTI_SPACE = re.compile(r"\s{2,}")

    # Applied in order; each strips from the first separator to the end
    SUFFIX_PATTERNS = [
        re.compile(r"\s*-\s*.+$"),
        re.compile(r"\s*\(.+\)\s*$"),
        re.compile(r"\s*/\s*.+$"),
        re.compile(r"\s*,\s*.+$"),
    ]

    def __init__(self, synonyms: dict[str, str] | None = None):
        self.synonyms = dict(self.DEFAULT_SYNONYMS if synonyms is None else synonyms)

    def display_name(self, raw: Any) -> str:
        """Strip "#" markers and standalone digit runs, collapse spaces."""
        if _is_missing(raw):
            return ""
        result = str(raw).replace("#", "")
        result = self.STANDALONE_NUMBER.sub("", result)
        return self.MULTI_SPACE.sub(" ", result).strip()

    def canonicalize(self, raw: Any) -> str:
        """Lower-case alphanumeric-and-space form used for comparison."""
        result = self.display_name(raw).lower()
        result = self.NON_CANONICAL.sub(" ", result)
        return self.MULTI_SPACE.sub(" ", result).strip()

    def clean_name(self, raw: Any) -> str:
        """Trim marketplace annotation suffixes ("- ...", "(...)", "/...", ", ...")."""
        if _is_missing(raw):
            return ""
        result = str(raw).strip()
        for pattern in self.SUFFIX_PATTERNS:
            result = pattern.sub("", result)
        return result.strip()

    def tokenize(self, canonical: str) -> list[str]:
        """Split a canonical name into tokens, applying the synonym table."""
        tokens = []
        for token in canonical.split(" "):
            # A synonym may expand to several tokens ("offwhite" -> "off white")
            tokens.extend(self.synonyms.get(token, token).split())
        return tokens

    def normalize(self, name: Any) -> str | None:
        """Canonical form, or None for blank names."""
        result = self.canonicalize(name)
        return result or None

    def normalize_series(self, series: pd.Series) -> pd.Series:
        """Normalize an entire pandas Series of product names."""
        return series.apply(self.normalize)
