"""
Item Repository
===============

Repository pattern implementation for accepted feed items. Items are written
once at ingestion time; afterwards only the ``read`` flag changes, and that
goes through ``upsert_item`` with the full record.
"""

from typing import List, Optional, Iterable
import sqlite3

from ..database.connection import DatabaseConnection
from ..database.models import Item
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


_INSERT_SQL = """
    INSERT OR REPLACE INTO items (
        id, feed_id, title, link, published_at, content,
        read, content_hash, author, size_bytes
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class ItemRepository:
    """Repository for managing item data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize item repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("item_repository")

    def upsert_items(
        self, items: Iterable[Item], conn: Optional[sqlite3.Connection] = None
    ) -> int:
        """Insert or replace items in a single transaction.

        Args:
            items: Item objects to store
            conn: Connection of an open transaction to write through; a new
                transaction is started when None

        Returns:
            Number of items written

        Raises:
            DatabaseError: If database operation fails
        """
        rows = [self._item_to_row(item) for item in items]
        if not rows:
            return 0

        try:
            if conn is None:
                with self.db.transaction() as tx:
                    tx.executemany(_INSERT_SQL, rows)
            else:
                conn.executemany(_INSERT_SQL, rows)

            self.logger.debug(f"Stored {len(rows)} item(s)")
            return len(rows)

        except sqlite3.Error as e:
            self.logger.error(f"Failed to store {len(rows)} items: {e}")
            raise DatabaseError(
                f"Failed to store items: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def upsert_item(self, item: Item) -> None:
        """Insert or replace a single item."""
        self.upsert_items([item])

    def get_item(self, item_id: str) -> Optional[Item]:
        """Get item by ID.

        Args:
            item_id: Item ID

        Returns:
            Item object if found, None otherwise
        """
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM items WHERE id = ?", (item_id,)
            ).fetchone()

            return self._row_to_item(row) if row else None

    def get_all_items(self) -> List[Item]:
        """Get every stored item, newest first."""
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM items ORDER BY published_at DESC, id"
                ).fetchall()

                return [self._row_to_item(row) for row in rows]

        except sqlite3.Error as e:
            self.logger.error(f"Failed to list items: {e}")
            raise DatabaseError(
                f"Failed to list items: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_items_by_feed(self, feed_id: str) -> List[Item]:
        """Get items of one feed, newest first.

        Args:
            feed_id: Feed ID

        Returns:
            List of Item objects
        """
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM items
                    WHERE feed_id = ?
                    ORDER BY published_at DESC, id
                """,
                    (feed_id,),
                ).fetchall()

                return [self._row_to_item(row) for row in rows]

        except sqlite3.Error as e:
            self.logger.error(f"Failed to list items for feed {feed_id}: {e}")
            raise DatabaseError(
                f"Failed to list items for feed {feed_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

    def has_content_hash(self, content_hash: str) -> bool:
        """Check whether any stored item, in any feed, has this content hash."""
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM items WHERE content_hash = ? LIMIT 1", (content_hash,)
            ).fetchone()
            return row is not None

    def has_item(self, item_id: str) -> bool:
        """Check whether an item with this ID is stored."""
        row = self.db.execute_one("SELECT 1 FROM items WHERE id = ? LIMIT 1", (item_id,))
        return row is not None

    @staticmethod
    def _item_to_row(item: Item) -> tuple:
        return (
            item.id,
            item.feed_id,
            item.title,
            item.link,
            item.published_at,
            item.content,
            item.read,
            item.content_hash,
            item.author,
            item.size_bytes,
        )

    def _row_to_item(self, row: sqlite3.Row) -> Item:
        """Convert database row to Item object."""
        return Item(
            id=row["id"],
            feed_id=row["feed_id"],
            title=row["title"],
            link=row["link"],
            published_at=row["published_at"],
            content=row["content"],
            read=bool(row["read"]),
            content_hash=row["content_hash"],
            author=row["author"],
            size_bytes=row["size_bytes"],
        )
