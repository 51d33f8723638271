"""
Unit Tests for OPML Import
==========================

Tests for extracting feed URLs from OPML outlines and importing them
through the pipeline.
"""

import pytest

from rssvault.ingestion.opml import parse_opml, import_opml, OpmlImportResult
from rssvault.utils.exceptions import FeedNotFoundError

from conftest import make_rss

OPML = """<?xml version="1.0" encoding="UTF-8"?>
<opml version="2.0">
  <head><title>Subscriptions</title></head>
  <body>
    <outline text="Tech">
      <outline type="rss" text="Blog A" xmlUrl="https://a.example.com/feed.xml"/>
      <outline type="rss" text="Blog B" xmlUrl="http://b.example.com/feed.xml"/>
    </outline>
    <outline type="rss" text="Blog C" xmlUrl="https://c.example.com/rss"/>
    <outline text="No URL"/>
  </body>
</opml>
"""


class TestParseOpml:
    """Test cases for parse_opml."""

    def test_extracts_https_urls_in_order(self):
        assert parse_opml(OPML) == [
            "https://a.example.com/feed.xml",
            "https://c.example.com/rss",
        ]

    def test_lowercase_attribute_name(self):
        text = '<opml><body><outline xmlurl="https://x.example.com/feed"/></body></opml>'
        assert parse_opml(text) == ["https://x.example.com/feed"]

    def test_repeated_urls_are_kept(self):
        text = (
            '<opml><body><outline xmlUrl="https://x.example.com/feed"/>'
            '<outline xmlUrl="https://x.example.com/feed"/></body></opml>'
        )
        assert len(parse_opml(text)) == 2

    @pytest.mark.parametrize("text", ["", "   ", "<opml><body></body></opml>", "not xml"])
    def test_no_urls(self, text):
        assert parse_opml(text) == []


class TestImportOpml:
    """Test cases for import_opml."""

    @pytest.mark.asyncio
    async def test_import_adds_each_feed(self, pipeline, registry, mock_fetcher):
        documents = {
            "https://a.example.com/feed.xml": make_rss([("A1", "https://a.example.com/1", "a1")], "Blog A"),
            "https://c.example.com/rss": make_rss([("C1", "https://c.example.com/1", "c1")], "Blog C"),
        }

        async def fetch(url):
            return documents[url].encode()

        mock_fetcher.fetch.side_effect = fetch

        result = await import_opml(pipeline, OPML)

        assert isinstance(result, OpmlImportResult)
        assert result.added_count == 2
        assert result.failures == {}
        assert sorted(feed.title for feed in registry.get_all_feeds()) == ["Blog A", "Blog C"]

    @pytest.mark.asyncio
    async def test_failures_are_collected_per_url(self, pipeline, registry, mock_fetcher):
        async def fetch(url):
            if url.startswith("https://a."):
                raise FeedNotFoundError(feed_url=url)
            return make_rss([("C1", "https://c.example.com/1", "c1")], "Blog C").encode()

        mock_fetcher.fetch.side_effect = fetch

        result = await import_opml(pipeline, OPML)

        assert result.added_count == 1
        assert result.failures == {"https://a.example.com/feed.xml": "Feed not found (404)"}
        assert len(registry.get_all_feeds()) == 1

    @pytest.mark.asyncio
    async def test_already_subscribed_feed_is_a_failure(self, pipeline, mock_fetcher):
        text = '<opml><body><outline xmlUrl="https://x.example.com/feed"/></body></opml>'
        await pipeline.add_feed("https://x.example.com/feed")

        result = await import_opml(pipeline, text)

        assert result.added_count == 0
        assert result.failures == {"https://x.example.com/feed": "Feed already exists"}
        assert mock_fetcher.fetch.await_count == 1
