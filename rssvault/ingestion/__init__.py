"""
RSSVault Ingestion Module
=========================

Feed ingestion components.

This module handles:
- Feed fetching and RSS/Atom parsing
- HTML sanitization and content fingerprints
- Cross-feed deduplication and per-feed storage budgets
- OPML bulk import
"""

from .fingerprint import fingerprint, feed_id_for, item_id_for, content_hash_for
from .sanitizer import HtmlSanitizer, sanitize_html
from .feed_parser import FeedParser, FeedMeta, RawEntry, FIELD_CANDIDATES
from .dedup import DedupIndex
from .feed_fetcher import FeedFetcher
from .pipeline import (
    IngestionPipeline,
    AddFeedResult,
    RefreshResult,
    RefreshAllResult,
    BudgetWarning,
)
from .opml import parse_opml, import_opml, OpmlImportResult

__all__ = [
    "fingerprint",
    "feed_id_for",
    "item_id_for",
    "content_hash_for",
    "HtmlSanitizer",
    "sanitize_html",
    "FeedParser",
    "FeedMeta",
    "RawEntry",
    "FIELD_CANDIDATES",
    "DedupIndex",
    "FeedFetcher",
    "IngestionPipeline",
    "AddFeedResult",
    "RefreshResult",
    "RefreshAllResult",
    "BudgetWarning",
    "parse_opml",
    "import_opml",
    "OpmlImportResult",
]
