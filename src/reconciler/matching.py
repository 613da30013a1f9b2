"""
Product matcher for resolving marketplace listings to catalog products.

Marketplace titles rarely equal catalog names. A listing might be
"Canvas Tote (Free Keychain)" with variation "Fuschia", while the catalog
holds "Canvas Tote Fuchsia". The matcher tries, in order:

1. Exact canonical match on base+variation, base, then variation
2. Best Jaccard token similarity across all candidates (>= threshold)
3. Substring / token-overlap fallback on the base name
4. Unmatched: the raw name is kept as a synthetic identity
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Union

from .config import Settings
from .inventory import CatalogProduct
from .parsers import ProductNameNormalizer

logger = logging.getLogger(__name__)


class MatchType(Enum):
    """How a match was determined."""

    EXACT_NAME = "exact_name"  # Canonical names identical
    SIMILARITY = "similarity"  # Best Jaccard score above threshold
    FALLBACK = "fallback"  # Substring or shared-token fallback
    UNMATCHED = "unmatched"  # No catalog entry, raw name kept


@dataclass
class MatchResult:
    """Result of resolving a single listing."""

    matched_product_name: str | None
    confidence: float  # 0-1
    match_type: MatchType
    product: CatalogProduct | None = None
    candidate: str = ""  # Canonical candidate that produced the match

    @property
    def is_linked(self) -> bool:
        """True when the result points at a real catalog entry."""
        return self.product is not None


@dataclass
class IndexedProduct:
    product: CatalogProduct
    canon: str
    tokens: frozenset[str]


@dataclass
class CatalogIndex:
    """
    Canonical names and token sets for a catalog snapshot.

    Built once per batch so every row doesn't re-canonicalize the catalog.
    """

    entries: list[IndexedProduct] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)


def jaccard(a: Sequence[str], b: Sequence[str]) -> float:
    """Intersection over union of two token collections (0 when both empty)."""
    set_a = set(a)
    set_b = set(b)
    union = len(set_a | set_b)
    if union == 0:
        return 0.0
    return len(set_a & set_b) / union


CatalogLike = Union[CatalogIndex, Sequence[CatalogProduct]]


class ProductMatcher:
    """
    Resolves (base name, variation name) pairs to catalog products.

    Matching is stateless: it reads the catalog snapshot and never mutates it.

    Usage:
        matcher = ProductMatcher()
        index = matcher.build_index(catalog)
        result = matcher.resolve("Canvas Tote", "Fuschia", index)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        names: ProductNameNormalizer | None = None,
    ):
        self.settings = settings or Settings()
        self.names = names or ProductNameNormalizer(self.settings.synonyms)

    def build_index(self, catalog: Sequence[CatalogProduct]) -> CatalogIndex:
        """Canonicalize and tokenize every catalog entry."""
        index = CatalogIndex()
        for product in catalog:
            canon = self.names.canonicalize(product.name)
            index.entries.append(
                IndexedProduct(
                    product=product,
                    canon=canon,
                    tokens=frozenset(self.names.tokenize(canon)),
                )
            )
        return index

    def resolve(self, base_raw: str, variation_raw: str, catalog: CatalogLike) -> MatchResult:
        """Resolve a listing to a catalog product (see module docstring)."""
        index = catalog if isinstance(catalog, CatalogIndex) else self.build_index(catalog)

        c_base = self.names.canonicalize(base_raw)
        c_var = self.names.canonicalize(variation_raw)
        candidates = [
            c for c in (f"{c_base} {c_var}".strip(), c_base, c_var) if c
        ]

        # 1. Exact pass - first candidate wins, always beats similarity
        for candidate in candidates:
            for entry in index.entries:
                if entry.canon == candidate:
                    return MatchResult(
                        matched_product_name=entry.product.name,
                        confidence=1.0,
                        match_type=MatchType.EXACT_NAME,
                        product=entry.product,
                        candidate=candidate,
                    )

        # 2. Similarity pass - single best pair, earliest wins ties
        best_score = 0.0
        best_entry: IndexedProduct | None = None
        best_candidate = ""
        for candidate in candidates:
            tokens = self.names.tokenize(candidate)
            for entry in index.entries:
                score = jaccard(tokens, entry.tokens)
                if score > best_score:
                    best_score, best_entry, best_candidate = score, entry, candidate

        if best_entry is not None and best_score >= self.settings.similarity_threshold:
            if best_score < self.settings.low_confidence_warning:
                logger.info(
                    "Low-confidence match %r -> %r (score %.2f)",
                    best_candidate,
                    best_entry.product.name,
                    best_score,
                )
            return MatchResult(
                matched_product_name=best_entry.product.name,
                confidence=best_score,
                match_type=MatchType.SIMILARITY,
                product=best_entry.product,
                candidate=best_candidate,
            )

        # 3. Fallback - substring or enough shared tokens with the base name
        if c_base:
            base_tokens = self.names.tokenize(c_base)
            for entry in index.entries:
                shared = set(base_tokens) & entry.tokens
                if c_base in entry.canon or len(shared) >= self.settings.min_token_overlap:
                    score = jaccard(base_tokens, entry.tokens)
                    logger.info(
                        "Fallback match %r -> %r (score %.2f)",
                        c_base,
                        entry.product.name,
                        score,
                    )
                    return MatchResult(
                        matched_product_name=entry.product.name,
                        confidence=score,
                        match_type=MatchType.FALLBACK,
                        product=entry.product,
                        candidate=c_base,
                    )

        # 4. Unmatched - keep the raw name so the sale is still countable
        raw_name = str(base_raw or variation_raw or "").strip()
        logger.debug("No catalog match for %r / %r", base_raw, variation_raw)
        return MatchResult(
            matched_product_name=raw_name or None,
            confidence=0.0,
            match_type=MatchType.UNMATCHED,
        )


@dataclass
class MatchSummary:
    """Summary of product matching across one import batch."""

    total: int = 0
    by_type: dict[MatchType, int] = field(default_factory=dict)
    low_confidence: list[MatchResult] = field(default_factory=list)

    def add(self, result: MatchResult, low_confidence_below: float) -> None:
        self.total += 1
        self.by_type[result.match_type] = self.by_type.get(result.match_type, 0) + 1
        if result.is_linked and result.confidence < low_confidence_below:
            self.low_confidence.append(result)

    @property
    def matched(self) -> int:
        return self.total - self.unmatched

    @property
    def unmatched(self) -> int:
        return self.by_type.get(MatchType.UNMATCHED, 0)

    @property
    def match_rate(self) -> float:
        if self.total == 0:
            return 0
        return self.matched / self.total

    def summary(self) -> dict:
        return {
            "total": self.total,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "low_confidence": len(self.low_confidence),
            "match_rate": f"{self.match_rate:.1%}",
        }
