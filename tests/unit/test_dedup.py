"""
Unit Tests for the Deduplication Index
"""

from unittest.mock import MagicMock

from rssvault.ingestion.dedup import DedupIndex
from rssvault.ingestion.feed_parser import RawEntry


def make_entry(item_id="id-1", content_hash="hash-1"):
    return RawEntry(
        item_id=item_id,
        title="Title",
        link="https://e.com/1",
        published_at=0,
        content="",
        content_hash=content_hash,
    )


def make_registry(hashes=(), ids=()):
    registry = MagicMock()
    registry.has_content_hash.side_effect = lambda value: value in hashes
    registry.has_item.side_effect = lambda value: value in ids
    return registry


class TestDedupIndex:
    """Test cases for DedupIndex."""

    def test_new_entry_is_not_duplicate(self):
        assert not DedupIndex(make_registry()).is_duplicate(make_entry())

    def test_stored_hash_is_duplicate(self):
        index = DedupIndex(make_registry(hashes={"hash-1"}))
        assert index.check_duplicate_hash("hash-1")
        assert index.is_duplicate(make_entry())

    def test_stored_item_id_is_duplicate(self):
        assert DedupIndex(make_registry(ids={"id-1"})).is_duplicate(make_entry())

    def test_accepted_entries_count_within_run(self):
        index = DedupIndex(make_registry())
        index.mark_accepted(make_entry())

        assert index.is_duplicate(make_entry(item_id="id-2"))
        assert index.is_duplicate(make_entry(content_hash="hash-2"))
        assert not index.is_duplicate(make_entry(item_id="id-3", content_hash="hash-3"))
