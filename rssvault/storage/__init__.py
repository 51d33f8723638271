"""
RSSVault Storage Layer
======================

Repository pattern implementations for data access abstraction.

This module provides:
- Feed repository for feed records and fetch health
- Item repository for the deduplicated item corpus
- FeedRegistry seam consumed by the ingestion pipeline
"""

from .feed_repository import FeedRepository
from .item_repository import ItemRepository
from .registry import FeedRegistry, SQLiteFeedRegistry

__all__ = [
    "FeedRepository",
    "ItemRepository",
    "FeedRegistry",
    "SQLiteFeedRegistry",
]
