"""
Unit Tests for the Feed Fetcher
===============================

HTTP outcomes are mapped onto the feed exception hierarchy. The aiohttp
session is replaced by a mock so no network access happens.
"""

import asyncio
from unittest.mock import MagicMock

import aiohttp
import pytest

from rssvault.ingestion.feed_fetcher import FeedFetcher
from rssvault.utils.exceptions import (
    FeedFetchError,
    FeedNotFoundError,
    FeedTimeoutError,
    FeedTransportError,
    UnsupportedSchemeError,
    ErrorCode,
)

FEED_URL = "https://example.com/feed.xml"


class FakeResponse:
    """Minimal async context manager standing in for aiohttp's response."""

    def __init__(self, status: int = 200, body: bytes = b""):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


def make_fetcher(response=None, error=None) -> FeedFetcher:
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return FeedFetcher(timeout=5, session=session)


class TestFeedFetcher:
    """Test cases for FeedFetcher."""

    @pytest.mark.asyncio
    async def test_success_returns_body(self):
        fetcher = make_fetcher(FakeResponse(200, b"<rss/>"))

        body = await fetcher.fetch(FEED_URL)

        assert body == b"<rss/>"
        fetcher._session.get.assert_called_once_with(FEED_URL)

    @pytest.mark.asyncio
    async def test_any_2xx_is_success(self):
        fetcher = make_fetcher(FakeResponse(203, b"<feed/>"))
        assert await fetcher.fetch(FEED_URL) == b"<feed/>"

    @pytest.mark.asyncio
    async def test_404_raises_not_found(self):
        fetcher = make_fetcher(FakeResponse(404))

        with pytest.raises(FeedNotFoundError) as exc_info:
            await fetcher.fetch(FEED_URL)

        assert exc_info.value.fetch_status == "not_found"
        assert exc_info.value.user_message == "Feed not found (404)"
        assert exc_info.value.error_code == ErrorCode.FEED_NOT_FOUND

    @pytest.mark.asyncio
    async def test_other_status_raises_fetch_error(self):
        fetcher = make_fetcher(FakeResponse(503))

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch(FEED_URL)

        assert not isinstance(exc_info.value, FeedNotFoundError)
        assert exc_info.value.status_code == 503
        assert exc_info.value.user_message == "HTTP 503"
        assert exc_info.value.fetch_status == "timeout"

    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self):
        fetcher = make_fetcher(error=asyncio.TimeoutError())

        with pytest.raises(FeedTimeoutError) as exc_info:
            await fetcher.fetch(FEED_URL)

        assert exc_info.value.fetch_status == "timeout"
        assert "timeout" in exc_info.value.user_message.lower()

    @pytest.mark.asyncio
    async def test_connection_error_raises_transport_error(self):
        fetcher = make_fetcher(error=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(FeedTransportError) as exc_info:
            await fetcher.fetch(FEED_URL)

        assert exc_info.value.fetch_status == "cors_error"
        assert exc_info.value.user_message == "Network error: connection refused"

    @pytest.mark.asyncio
    async def test_non_https_rejected_before_io(self):
        fetcher = make_fetcher(FakeResponse(200, b""))

        with pytest.raises(UnsupportedSchemeError):
            await fetcher.fetch("http://example.com/feed.xml")

        fetcher._session.get.assert_not_called()

    def test_defaults_from_settings(self):
        fetcher = FeedFetcher()
        assert fetcher.timeout == 30
        assert fetcher.user_agent.startswith("RSSVault")
