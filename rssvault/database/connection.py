"""
RSSVault Database Connection Management
=======================================

Connection pool and transaction management for the SQLite corpus.

Connections run in autocommit mode; every write goes through
``transaction()``, which takes the write lock up front with
``BEGIN IMMEDIATE`` so a feed and its items are committed by a single
writer. The pool grows on demand up to ``pool_size`` connections.
"""

import sqlite3
import threading
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, Any, List, Dict
from queue import LifoQueue, Empty, Full

logger = logging.getLogger(__name__)

CORPUS_TABLES = ("feeds", "items")


class DatabaseConnection:
    """Pooled SQLite connections for one corpus database file."""

    def __init__(self, db_path: str = "data/rssvault.db", pool_size: int = 5,
                 busy_timeout: float = 30.0):
        """Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            pool_size: Maximum number of idle connections kept open
            busy_timeout: Seconds to wait for another writer's lock
        """
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self.pool: LifoQueue = LifoQueue(maxsize=pool_size)
        self.lock = threading.Lock()
        self._total_connections = 0

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=self.busy_timeout,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")

        with self.lock:
            self._total_connections += 1

        logger.debug(f"Opened connection #{self._total_connections} to {self.db_path}")
        return conn

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self.pool.get_nowait()
        except Empty:
            return self._create_connection()

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.rollback()
        try:
            self.pool.put_nowait(conn)
        except Full:
            conn.close()
            with self.lock:
                self._total_connections -= 1

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Borrow a connection for reads; it goes back to the pool afterwards.

        Usage:
            with db_manager.get_connection() as conn:
                rows = conn.execute("SELECT * FROM items").fetchall()
        """
        conn = self._acquire()
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Database error on {self.db_path.name}: {e}")
            raise
        finally:
            self._release(conn)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run writes in one immediate transaction.

        Commits on success and rolls back on any exception.

        Usage:
            with db_manager.transaction() as conn:
                conn.executemany("INSERT OR REPLACE INTO items ...", rows)
        """
        with self.get_connection() as conn:
            start_time = time.perf_counter()
            conn.execute("BEGIN IMMEDIATE")

            lock_wait = time.perf_counter() - start_time
            if lock_wait > 1.0:
                logger.warning(f"Waited {lock_wait:.2f}s for the database write lock")

            try:
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Transaction rolled back: {e}")
                raise

    def execute_query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Run a read query and return all rows."""
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchall()

    def execute_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Run a read query and return the first row, if any."""
        with self.get_connection() as conn:
            return conn.execute(query, params).fetchone()

    def get_database_info(self) -> Dict[str, Any]:
        """Corpus size on disk and row counts."""
        with self.get_connection() as conn:
            page_count = conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = conn.execute("PRAGMA page_size").fetchone()[0]

            table_counts = {}
            for table in CORPUS_TABLES:
                try:
                    table_counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                except sqlite3.OperationalError:
                    # Schema not created yet
                    table_counts[table] = 0

        wal_path = self.db_path.with_name(self.db_path.name + "-wal")
        database_size = page_count * page_size

        return {
            "database_size_bytes": database_size,
            "database_size_mb": database_size / (1024 * 1024),
            "wal_size_bytes": wal_path.stat().st_size if wal_path.exists() else 0,
            "table_counts": table_counts,
            "idle_connections": self.pool.qsize(),
            "total_connections": self._total_connections,
        }

    def checkpoint(self) -> None:
        """Fold the write-ahead log back into the main database file."""
        with self.get_connection() as conn:
            conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")

    def close_all_connections(self) -> None:
        """Checkpoint the WAL and close every idle connection."""
        try:
            self.checkpoint()
        except sqlite3.Error as e:
            logger.warning(f"WAL checkpoint skipped: {e}")

        closed = 0
        while True:
            try:
                conn = self.pool.get_nowait()
            except Empty:
                break
            conn.close()
            closed += 1

        with self.lock:
            self._total_connections = max(self._total_connections - closed, 0)

        logger.debug(f"Closed {closed} connections to {self.db_path}")


# Process-wide manager for the CLI; the pipeline receives its registry explicitly
_db_manager: Optional[DatabaseConnection] = None


def get_db_manager(db_path: str = "data/rssvault.db", pool_size: int = 5) -> DatabaseConnection:
    """Get the process-wide database manager, creating it on first use.

    Args:
        db_path: Path to database file
        pool_size: Connection pool size used on first creation

    Returns:
        Database connection manager instance
    """
    global _db_manager

    if _db_manager is None:
        _db_manager = DatabaseConnection(db_path, pool_size=pool_size)

    return _db_manager
