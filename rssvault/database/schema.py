"""
RSSVault Database Schema
========================

SQLite database schema implementation with foreign key constraints and
indexes for the feed registry:
- feeds: subscribed sources with fetch health and storage budget
- items: accepted entries, indexed by feed, publication time and content hash
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


EXPECTED_TABLES = {"feeds", "items"}


class DatabaseSchema:
    """Database schema manager for the RSSVault SQLite database."""

    def __init__(self, db_path: str = "data/rssvault.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables with proper schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            self._create_feeds_table(conn)
            self._create_items_table(conn)
            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_feeds_table(self, conn: sqlite3.Connection) -> None:
        """Create feeds table; per-feed settings are stored as columns."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feeds (
                id TEXT PRIMARY KEY,
                url TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                last_fetched_at INTEGER NOT NULL,
                last_fetch_status TEXT NOT NULL CHECK (last_fetch_status IN
                    ('success', 'not_found', 'malformed_xml', 'cors_error', 'timeout')),
                last_fetch_error TEXT,
                total_size_bytes INTEGER NOT NULL DEFAULT 0 CHECK (total_size_bytes >= 0),
                fetch_images BOOLEAN NOT NULL DEFAULT FALSE,
                max_size_bytes INTEGER NOT NULL CHECK (max_size_bytes > 0)
            )
        """
        )

    def _create_items_table(self, conn: sqlite3.Connection) -> None:
        """Create items table for accepted entries."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                feed_id TEXT NOT NULL,
                title TEXT NOT NULL,
                link TEXT NOT NULL DEFAULT '',
                published_at INTEGER NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                read BOOLEAN NOT NULL DEFAULT FALSE,
                content_hash TEXT NOT NULL,
                author TEXT,
                size_bytes INTEGER NOT NULL CHECK (size_bytes >= 0),
                FOREIGN KEY (feed_id) REFERENCES feeds(id)
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create secondary indexes used by the registry scans."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_items_feed_id ON items(feed_id)",
            "CREATE INDEX IF NOT EXISTS idx_items_published ON items(published_at)",
            "CREATE INDEX IF NOT EXISTS idx_items_hash ON items(content_hash)",
            "CREATE INDEX IF NOT EXISTS idx_feeds_status ON feeds(last_fetch_status)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def drop_tables(self) -> None:
        """Drop all tables (for testing/reset purposes)."""
        with sqlite3.connect(self.db_path) as conn:
            # Drop in reverse dependency order
            for table in ("items", "feeds"):
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.commit()
            logger.info("All database tables dropped")

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def verify_schema(self) -> bool:
        """Verify database schema is correctly created."""
        try:
            conn = self.get_connection()
            try:
                cursor = conn.execute(
                    """
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                    ORDER BY name
                """
                )
                tables = {row[0] for row in cursor.fetchall()}
            finally:
                conn.close()

            if not EXPECTED_TABLES.issubset(tables):
                logger.error(
                    f"Missing tables. Expected: {EXPECTED_TABLES}, Found: {tables}"
                )
                return False

            logger.info("Database schema verification passed")
            return True

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False

