"""
Deduplication Index
===================

Global, cross-feed duplicate detection for one ingestion run. An entry is
a duplicate when its content hash or its item id is already stored in any
feed, or when it repeats an entry accepted earlier in the same run.
"""

from typing import Set

from ..storage.registry import FeedRegistry
from .feed_parser import RawEntry


class DedupIndex:
    """Duplicate checks against the registry plus the current run."""

    def __init__(self, registry: FeedRegistry):
        self.registry = registry
        self._seen_hashes: Set[str] = set()
        self._seen_ids: Set[str] = set()

    def check_duplicate_hash(self, content_hash: str) -> bool:
        """Check whether any stored item, in any feed, has this content hash."""
        return content_hash in self._seen_hashes or self.registry.has_content_hash(content_hash)

    def is_duplicate(self, entry: RawEntry) -> bool:
        """Check an entry by content hash first, then by item id."""
        if self.check_duplicate_hash(entry.content_hash):
            return True
        return entry.item_id in self._seen_ids or self.registry.has_item(entry.item_id)

    def mark_accepted(self, entry: RawEntry) -> None:
        """Record an entry accepted in this run."""
        self._seen_hashes.add(entry.content_hash)
        self._seen_ids.add(entry.item_id)
