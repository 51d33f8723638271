"""
Ingestion Pipeline
==================

Orchestrates fetching, parsing, deduplication and budgeted acceptance of
feed entries, and records per-feed fetch health.

Acceptance walks entries in document order. Duplicates (by content hash or
item id, across every feed) are skipped; the first new entry that would push
the feed past its storage budget ends the run for that feed. Hitting the
budget is reported as a ``BudgetWarning`` on an otherwise successful result.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..config.settings import IngestionSettings
from ..database.models import Feed, FeedSettings, FetchStatus, Item, StorageQuota, now_ms
from ..monitoring.storage_quota import StorageQuotaProbe
from ..storage.registry import FeedRegistry
from ..utils.exceptions import (
    DatabaseError,
    FeedAlreadyExistsError,
    FeedError,
    ItemNotFoundError,
    get_user_friendly_message,
)
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.validators import URLValidator, validate_max_size_bytes
from .dedup import DedupIndex
from .feed_fetcher import FeedFetcher
from .feed_parser import FeedParser, RawEntry, DEFAULT_FEED_TITLE
from .fingerprint import feed_id_for


@dataclass
class BudgetWarning:
    """Advisory raised when a feed's storage budget stopped acceptance."""

    feed_id: str
    max_size_bytes: int
    used_bytes: int
    remaining_entries: int

    @property
    def message(self) -> str:
        return (
            f"Storage limit reached ({self.used_bytes} of {self.max_size_bytes} bytes); "
            f"{self.remaining_entries} entries were not saved"
        )

    def __str__(self) -> str:
        return self.message


@dataclass
class AcceptOutcome:
    """Entries accepted by one run of the accept loop."""

    items: List[Item]
    total_size_bytes: int
    duplicates: int = 0
    warning: Optional[BudgetWarning] = None


@dataclass
class AddFeedResult:
    """Result of subscribing to a new feed."""

    feed: Feed
    items: List[Item]
    warning: Optional[BudgetWarning] = None
    quota: Optional[StorageQuota] = None


@dataclass
class RefreshResult:
    """Result of refreshing one feed. Failures are recorded, never raised."""

    feed: Feed
    new_items: List[Item] = field(default_factory=list)
    success: bool = True
    error: Optional[str] = None
    warning: Optional[BudgetWarning] = None
    quota: Optional[StorageQuota] = None


@dataclass
class RefreshAllResult:
    """Result of refreshing a batch of feeds."""

    results: List[RefreshResult]
    feeds: List[Feed]
    items: List[Item]

    @property
    def failed(self) -> List[RefreshResult]:
        return [result for result in self.results if not result.success]

    @property
    def new_item_count(self) -> int:
        return sum(len(result.new_items) for result in self.results)


class IngestionPipeline:
    """Feed ingestion orchestrator."""

    def __init__(
        self,
        registry: FeedRegistry,
        fetcher: Optional[FeedFetcher] = None,
        parser: Optional[FeedParser] = None,
        quota_probe: Optional[StorageQuotaProbe] = None,
        settings: Optional[IngestionSettings] = None,
    ):
        """Initialize ingestion pipeline.

        Args:
            registry: Feed and item storage
            fetcher: Network collaborator with an async ``fetch(url)``
            parser: Feed document parser
            quota_probe: Optional storage usage estimator
            settings: Ingestion defaults
        """
        self.registry = registry
        self.settings = settings or IngestionSettings()
        self.fetcher = fetcher or FeedFetcher(
            timeout=self.settings.request_timeout, user_agent=self.settings.user_agent
        )
        self.parser = parser or FeedParser()
        self.quota_probe = quota_probe
        self.logger = get_logger_for_component("pipeline")

    async def add_feed(
        self,
        url: str,
        fetch_images: Optional[bool] = None,
        max_size_bytes: Optional[int] = None,
    ) -> AddFeedResult:
        """Subscribe to a feed and ingest its current entries.

        Args:
            url: HTTPS feed URL
            fetch_images: Keep image/media tags (settings default if None)
            max_size_bytes: Storage budget for the feed (settings default if None)

        Returns:
            AddFeedResult with the stored feed and accepted items

        Raises:
            UnsupportedSchemeError: URL is not https
            FeedAlreadyExistsError: A feed with this URL is already stored
            FeedError: Fetch or parse failed; nothing is stored
        """
        URLValidator.validate_feed_url(url)

        feed_id = feed_id_for(url)
        if self.registry.get_feed(feed_id) is not None:
            raise FeedAlreadyExistsError(url, feed_id)

        feed_settings = FeedSettings(
            fetch_images=self.settings.fetch_images if fetch_images is None else fetch_images,
            max_size_bytes=validate_max_size_bytes(
                self.settings.max_size_bytes if max_size_bytes is None else max_size_bytes
            ),
        )

        with PerformanceLogger(self.logger, f"add feed {url}"):
            raw = await self.fetcher.fetch(url)
            meta, entries = self.parser.parse(raw, feed_settings.fetch_images)
            outcome = self._accept_entries(
                feed_id, entries, 0, feed_settings.max_size_bytes
            )

            feed = Feed(
                id=feed_id,
                url=url,
                title=meta.title,
                description=meta.description,
                last_fetched_at=now_ms(),
                last_fetch_status=FetchStatus.SUCCESS,
                last_fetch_error=None,
                total_size_bytes=outcome.total_size_bytes,
                settings=feed_settings,
            )

            self.registry.put_feed_with_items(feed, outcome.items)

        self.logger.info(
            f"Added feed '{feed.title}' ({feed_id[:12]}): {len(outcome.items)} items, "
            f"{outcome.duplicates} duplicates skipped"
        )

        return AddFeedResult(
            feed=feed,
            items=outcome.items,
            warning=outcome.warning,
            quota=self._estimate_quota(),
        )

    async def refresh_feed(self, feed: Feed) -> RefreshResult:
        """Fetch new entries for a stored feed.

        Any failure is recorded on the feed as a fetch status and message;
        this method does not raise for fetch, parse or storage errors.
        """
        logger = get_logger_for_component("pipeline", feed_id=feed.id, feed_url=feed.url)

        try:
            raw = await self.fetcher.fetch(feed.url)
            meta, entries = self.parser.parse(raw, feed.settings.fetch_images)
            outcome = self._accept_entries(
                feed.id, entries, feed.total_size_bytes, feed.settings.max_size_bytes
            )

            updated = feed.model_copy(update={
                "title": meta.title if meta.title != DEFAULT_FEED_TITLE else feed.title,
                "description": meta.description or feed.description,
                "last_fetched_at": now_ms(),
                "last_fetch_status": FetchStatus.SUCCESS,
                "last_fetch_error": None,
                "total_size_bytes": outcome.total_size_bytes,
            })

            self.registry.put_feed_with_items(updated, outcome.items)

            logger.info(
                f"Refreshed '{updated.title}': {len(outcome.items)} new items, "
                f"{outcome.duplicates} duplicates skipped"
            )
            return RefreshResult(
                feed=updated,
                new_items=outcome.items,
                warning=outcome.warning,
                quota=self._estimate_quota(),
            )

        except Exception as e:
            status, message = self.classify_failure(e)
            logger.warning(f"Refresh failed ({status.value}): {message}")

            failed = feed.model_copy(update={
                "last_fetched_at": now_ms(),
                "last_fetch_status": status,
                "last_fetch_error": message,
            })

            try:
                self.registry.put_feeds([failed])
            except DatabaseError as db_error:
                logger.error(f"Could not record refresh failure: {db_error}")

            return RefreshResult(feed=failed, success=False, error=message)

    async def refresh_all(self, feeds: Optional[Sequence[Feed]] = None) -> RefreshAllResult:
        """Refresh feeds one after another.

        Args:
            feeds: Feeds to refresh; every stored feed if None

        Returns:
            Per-feed results plus the reloaded feeds and item corpus
        """
        if feeds is None:
            feeds = self.registry.get_all_feeds()

        results = []
        with PerformanceLogger(self.logger, f"refresh of {len(feeds)} feeds"):
            for feed in feeds:
                results.append(await self.refresh_feed(feed))

        failures = sum(1 for result in results if not result.success)
        if failures:
            self.logger.warning(f"{failures} of {len(results)} feeds failed to refresh")

        return RefreshAllResult(
            results=results,
            feeds=self.registry.get_all_feeds(),
            items=self.registry.get_all_items(),
        )

    def set_item_read(self, item_id: str, read: bool = True) -> Item:
        """Set an item's read flag; other fields are untouched."""
        item = self.registry.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        if item.read == read:
            return item

        updated = item.model_copy(update={"read": read})
        self.registry.put_item(updated)
        return updated

    def toggle_read(self, item_id: str) -> Item:
        """Flip an item's read flag."""
        item = self.registry.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return self.set_item_read(item_id, not item.read)

    @staticmethod
    def classify_failure(error: Exception):
        """Map a refresh failure to the fetch status and message recorded on the feed."""
        if isinstance(error, FeedError):
            return FetchStatus(error.fetch_status), error.user_message
        return FetchStatus.TIMEOUT, get_user_friendly_message(error)

    def _accept_entries(
        self,
        feed_id: str,
        entries: Sequence[RawEntry],
        starting_total: int,
        max_size_bytes: int,
    ) -> AcceptOutcome:
        dedup = DedupIndex(self.registry)
        running_total = starting_total
        accepted: List[Item] = []
        duplicates = 0

        for index, entry in enumerate(entries):
            if dedup.is_duplicate(entry):
                duplicates += 1
                continue

            item = self._build_item(feed_id, entry)
            if running_total + item.size_bytes > max_size_bytes:
                warning = BudgetWarning(
                    feed_id=feed_id,
                    max_size_bytes=max_size_bytes,
                    used_bytes=running_total,
                    remaining_entries=len(entries) - index,
                )
                self.logger.warning(warning.message)
                return AcceptOutcome(accepted, running_total, duplicates, warning)

            dedup.mark_accepted(entry)
            accepted.append(item)
            running_total += item.size_bytes

        return AcceptOutcome(accepted, running_total, duplicates)

    @staticmethod
    def _build_item(feed_id: str, entry: RawEntry) -> Item:
        item = Item(
            id=entry.item_id,
            feed_id=feed_id,
            title=entry.title,
            link=entry.link,
            published_at=entry.published_at,
            content=entry.content,
            read=False,
            content_hash=entry.content_hash,
            author=entry.author,
        )
        # Size is frozen at creation; later read-flag changes don't update it
        return item.model_copy(update={"size_bytes": item.serialized_size()})

    def _estimate_quota(self) -> Optional[StorageQuota]:
        if self.quota_probe is None:
            return None
        return self.quota_probe.estimate()
