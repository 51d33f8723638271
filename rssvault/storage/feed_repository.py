"""
Feed Repository
===============

Repository pattern implementation for feed records.
Provides database abstraction layer for feed reads and upserts.
"""

from typing import List, Optional, Iterable
import sqlite3

from ..database.connection import DatabaseConnection
from ..database.models import Feed, FeedSettings, FetchStatus
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


_UPSERT_SQL = """
    INSERT OR REPLACE INTO feeds (
        id, url, title, description, last_fetched_at,
        last_fetch_status, last_fetch_error, total_size_bytes,
        fetch_images, max_size_bytes
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class FeedRepository:
    """Repository for managing feed data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def upsert_feeds(
        self, feeds: Iterable[Feed], conn: Optional[sqlite3.Connection] = None
    ) -> int:
        """Insert or replace feeds in a single transaction.

        Args:
            feeds: Feed objects to store
            conn: Connection of an open transaction to write through; a new
                transaction is started when None

        Returns:
            Number of feeds written

        Raises:
            DatabaseError: If database operation fails
        """
        rows = [self._feed_to_row(feed) for feed in feeds]
        if not rows:
            return 0

        try:
            if conn is None:
                with self.db.transaction() as tx:
                    tx.executemany(_UPSERT_SQL, rows)
            else:
                conn.executemany(_UPSERT_SQL, rows)

            self.logger.debug(f"Stored {len(rows)} feed(s)")
            return len(rows)

        except sqlite3.Error as e:
            self.logger.error(f"Failed to store feeds: {e}")
            raise DatabaseError(
                f"Failed to store feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_feed(self, feed_id: str) -> Optional[Feed]:
        """Get feed by ID.

        Args:
            feed_id: Feed ID

        Returns:
            Feed object if found, None otherwise
        """
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM feeds WHERE id = ?", (feed_id,)
                ).fetchone()

                return self._row_to_feed(row) if row else None

        except sqlite3.Error as e:
            self.logger.error(f"Failed to get feed {feed_id}: {e}")
            raise DatabaseError(
                f"Failed to get feed {feed_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_all_feeds(self) -> List[Feed]:
        """Get all stored feeds ordered by title."""
        try:
            rows = self.db.execute_query("SELECT * FROM feeds ORDER BY title COLLATE NOCASE, id")
            return [self._row_to_feed(row) for row in rows]

        except sqlite3.Error as e:
            self.logger.error(f"Failed to list feeds: {e}")
            raise DatabaseError(
                f"Failed to list feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def feed_exists(self, feed_id: str) -> bool:
        """Check whether a feed with this ID is stored."""
        row = self.db.execute_one("SELECT 1 FROM feeds WHERE id = ? LIMIT 1", (feed_id,))
        return row is not None

    def count_feeds(self) -> int:
        """Get number of stored feeds."""
        return self.db.execute_one("SELECT COUNT(*) FROM feeds")[0]

    @staticmethod
    def _feed_to_row(feed: Feed) -> tuple:
        return (
            feed.id,
            feed.url,
            feed.title,
            feed.description,
            feed.last_fetched_at,
            feed.last_fetch_status.value,
            feed.last_fetch_error,
            feed.total_size_bytes,
            feed.settings.fetch_images,
            feed.settings.max_size_bytes,
        )

    def _row_to_feed(self, row: sqlite3.Row) -> Feed:
        """Convert database row to Feed object.

        Args:
            row: Database row

        Returns:
            Feed object
        """
        return Feed(
            id=row["id"],
            url=row["url"],
            title=row["title"],
            description=row["description"],
            last_fetched_at=row["last_fetched_at"],
            last_fetch_status=FetchStatus(row["last_fetch_status"]),
            last_fetch_error=row["last_fetch_error"],
            total_size_bytes=row["total_size_bytes"],
            settings=FeedSettings(
                fetch_images=bool(row["fetch_images"]),
                max_size_bytes=row["max_size_bytes"],
            ),
        )
