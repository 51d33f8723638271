"""
Unit tests for RSSVault database models.

Tests Pydantic model validation, defaults and helper methods for Feed,
Item, FeedSettings and StorageQuota.
"""

import json

import pytest
from pydantic import ValidationError

from rssvault.database.models import (
    Feed,
    FeedSettings,
    FetchStatus,
    Item,
    StorageQuota,
    now_ms,
)


class TestFeedModel:
    """Test Feed model validation and methods."""

    def test_feed_defaults(self):
        before = now_ms()
        feed = Feed(id="feed-1", url="https://example.com/feed.xml")

        assert feed.title == "Untitled Feed"
        assert feed.description == ""
        assert feed.last_fetch_status == FetchStatus.SUCCESS
        assert feed.last_fetch_error is None
        assert feed.total_size_bytes == 0
        assert feed.settings == FeedSettings()
        assert feed.last_fetched_at >= before

    def test_feed_requires_identity(self):
        with pytest.raises(ValidationError):
            Feed(id="", url="https://example.com/feed.xml")

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError):
            Feed(id="f", url="https://e.com/feed", total_size_bytes=-1)

    def test_is_healthy(self):
        feed = Feed(id="f", url="https://e.com/feed")
        assert feed.is_healthy()

        failed = feed.model_copy(update={"last_fetch_status": FetchStatus.TIMEOUT})
        assert not failed.is_healthy()

    def test_remaining_budget(self):
        feed = Feed(
            id="f",
            url="https://e.com/feed",
            total_size_bytes=700,
            settings=FeedSettings(max_size_bytes=1000),
        )
        assert feed.remaining_budget() == 300

        over = feed.model_copy(update={"total_size_bytes": 1200})
        assert over.remaining_budget() == 0

    def test_fetch_status_values(self):
        assert {status.value for status in FetchStatus} == {
            "success", "not_found", "malformed_xml", "cors_error", "timeout"
        }


class TestFeedSettings:
    """Test per-feed settings."""

    def test_defaults(self):
        settings = FeedSettings()
        assert settings.fetch_images is False
        assert settings.max_size_bytes == 7 * 1024 * 1024

    @pytest.mark.parametrize("value", [0, -1])
    def test_budget_must_be_positive(self, value):
        with pytest.raises(ValidationError):
            FeedSettings(max_size_bytes=value)


class TestItemModel:
    """Test Item model validation and size computation."""

    def make_item(self, **overrides):
        values = dict(
            id="item-1",
            feed_id="feed-1",
            title="Title",
            link="https://e.com/1",
            published_at=1_700_000_000_000,
            content="<p>Body</p>",
            content_hash="hash-1",
        )
        values.update(overrides)
        return Item(**values)

    def test_item_defaults(self):
        item = self.make_item()
        assert item.read is False
        assert item.author is None
        assert item.size_bytes == 0

    def test_blank_author_normalized(self):
        assert self.make_item(author="   ").author is None
        assert self.make_item(author="Alice").author == "Alice"

    def test_content_hash_required(self):
        with pytest.raises(ValidationError):
            self.make_item(content_hash="")

    def test_serialized_size_is_utf8_json_length(self):
        item = self.make_item(content="<p>café</p>")
        expected = len(item.model_dump_json(exclude={"size_bytes"}).encode("utf-8"))

        assert item.serialized_size() == expected
        assert json.loads(item.model_dump_json())["content"] == "<p>café</p>"

    def test_serialized_size_ignores_size_field(self):
        item = self.make_item()
        sized = item.model_copy(update={"size_bytes": 123456})
        assert sized.serialized_size() == item.serialized_size()

    def test_multibyte_content_counts_bytes(self):
        ascii_item = self.make_item(content="aa")
        accented = self.make_item(content="é")
        # "é" is two UTF-8 bytes, serialized as-is by pydantic
        assert accented.serialized_size() == ascii_item.serialized_size()


class TestStorageQuota:
    """Test storage quota reporting."""

    def test_percentage(self):
        quota = StorageQuota(used_bytes=25, total_bytes=100)
        assert quota.percentage == 25.0
        assert not quota.is_near_limit()

    def test_near_limit(self):
        quota = StorageQuota(used_bytes=80, total_bytes=100)
        assert quota.is_near_limit()
        assert not quota.is_near_limit(threshold=90.0)

    def test_empty_quota(self):
        quota = StorageQuota()
        assert quota.percentage == 0.0
        assert not quota.is_near_limit()
