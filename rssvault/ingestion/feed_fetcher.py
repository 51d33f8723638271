"""
Feed Fetcher
============

HTTPS retrieval of feed documents over aiohttp. Transport outcomes are
turned into the feed exception hierarchy; parsing happens elsewhere.
"""

import asyncio
import ssl
import time
from contextlib import asynccontextmanager
from typing import Optional

import aiohttp
import certifi

from ..config.settings import IngestionSettings
from ..utils.exceptions import (
    FeedFetchError,
    FeedNotFoundError,
    FeedTimeoutError,
    FeedTransportError,
)
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


class FeedFetcher:
    """Single-document feed fetcher."""

    ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"

    def __init__(
        self,
        timeout: Optional[int] = None,
        user_agent: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize feed fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            session: Externally owned session; a new one is opened per fetch if omitted
        """
        defaults = IngestionSettings()
        self.timeout = timeout or defaults.request_timeout
        self.user_agent = user_agent or defaults.user_agent
        self._session = session
        self.logger = get_logger_for_component("feed_fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        if self._session is not None:
            yield self._session
            return

        connector = aiohttp.TCPConnector(ssl=self.ssl_context, enable_cleanup_closed=True)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": self.ACCEPT,
            "Accept-Encoding": "gzip, deflate",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch(self, url: str) -> bytes:
        """Fetch a feed document.

        Args:
            url: HTTPS feed URL

        Returns:
            Response body bytes

        Raises:
            UnsupportedSchemeError: URL is not https
            FeedNotFoundError: Server answered 404
            FeedFetchError: Any other non-2xx status
            FeedTimeoutError: Request did not finish in time
            FeedTransportError: Connection or client-level failure
        """
        URLValidator.validate_feed_url(url)
        start_time = time.time()

        self.logger.debug(f"Fetching feed: {url}")

        try:
            async with self.get_session() as session:
                async with session.get(url) as response:
                    if response.status == 404:
                        self.logger.warning(f"Feed not found: {url}")
                        raise FeedNotFoundError(feed_url=url)

                    if not 200 <= response.status < 300:
                        self.logger.warning(f"Feed fetch failed for {url}: HTTP {response.status}")
                        raise FeedFetchError(
                            f"HTTP {response.status}", feed_url=url, status_code=response.status
                        )

                    body = await response.read()

        except asyncio.TimeoutError as e:
            self.logger.warning(f"Feed fetch timeout for {url} after {self.timeout}s")
            raise FeedTimeoutError(
                f"Request timeout after {self.timeout}s", feed_url=url
            ) from e

        except aiohttp.ClientError as e:
            self.logger.warning(f"Feed fetch transport error for {url}: {e}")
            raise FeedTransportError(str(e) or e.__class__.__name__, feed_url=url) from e

        self.logger.info(
            f"Fetched {len(body)} bytes from {url} in {time.time() - start_time:.2f}s"
        )
        return body
