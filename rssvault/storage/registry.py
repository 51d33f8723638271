"""
Feed Registry
=============

Persistence seam used by the ingestion pipeline. The pipeline only ever talks
to a ``FeedRegistry``; ``SQLiteFeedRegistry`` is the production
implementation on top of the feed and item repositories.
"""

import sqlite3
from typing import List, Optional, Iterable, Protocol, Sequence

from ..database.connection import DatabaseConnection
from ..database.models import Feed, Item
from ..utils.exceptions import DatabaseError, ErrorCode
from .feed_repository import FeedRepository
from .item_repository import ItemRepository


class FeedRegistry(Protocol):
    """Storage operations required by the ingestion pipeline."""

    def put_feeds(self, feeds: Iterable[Feed]) -> None: ...

    def get_all_feeds(self) -> List[Feed]: ...

    def get_feed(self, feed_id: str) -> Optional[Feed]: ...

    def get_all_items(self) -> List[Item]: ...

    def get_items_by_feed(self, feed_id: str) -> List[Item]: ...

    def get_item(self, item_id: str) -> Optional[Item]: ...

    def has_content_hash(self, content_hash: str) -> bool: ...

    def has_item(self, item_id: str) -> bool: ...

    def put_feed_with_items(self, feed: Feed, items: Sequence[Item]) -> None: ...

    def put_item(self, item: Item) -> None: ...


class SQLiteFeedRegistry:
    """FeedRegistry backed by the SQLite repositories."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.feeds = FeedRepository(db_connection)
        self.items = ItemRepository(db_connection)

    def put_feeds(self, feeds: Iterable[Feed]) -> None:
        self.feeds.upsert_feeds(feeds)

    def get_all_feeds(self) -> List[Feed]:
        return self.feeds.get_all_feeds()

    def get_feed(self, feed_id: str) -> Optional[Feed]:
        return self.feeds.get_feed(feed_id)

    def get_all_items(self) -> List[Item]:
        return self.items.get_all_items()

    def get_items_by_feed(self, feed_id: str) -> List[Item]:
        return self.items.get_items_by_feed(feed_id)

    def get_item(self, item_id: str) -> Optional[Item]:
        return self.items.get_item(item_id)

    def has_content_hash(self, content_hash: str) -> bool:
        return self.items.has_content_hash(content_hash)

    def has_item(self, item_id: str) -> bool:
        return self.items.has_item(item_id)

    def put_feed_with_items(self, feed: Feed, items: Sequence[Item]) -> None:
        """Store a feed and its newly accepted items in one transaction.

        Nothing is written unless both writes succeed, so the stored
        ``total_size_bytes`` always matches the stored items.
        """
        try:
            with self.db.transaction() as conn:
                self.feeds.upsert_feeds([feed], conn=conn)
                self.items.upsert_items(items, conn=conn)
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to store feed {feed.id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def put_item(self, item: Item) -> None:
        self.items.upsert_item(item)
