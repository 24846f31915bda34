"""Database connection manager for SQLite with WAL mode and proper configuration."""

import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Manages the SQLite connection backing the catalog.

    Features:
    - WAL mode for concurrent reads
    - One connection per instance, shared across threads behind a lock
      (the scan coordinator and the enrichment thread both write)
    - Transaction context manager
    """

    def __init__(self, db_path: Path):
        """
        Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file (":memory:" is accepted)
        """
        self.db_path = db_path
        self.lock = threading.RLock()
        self._connection: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """
        Establish database connection with proper configuration.

        Returns:
            SQLite connection object

        Raises:
            sqlite3.Error: If connection fails
        """
        if self._connection is not None:
            return self._connection

        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Connecting to database: {{'path': {str(self.db_path)!r}}}")
        self._connection = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            timeout=5.0
        )
        self._connection.row_factory = sqlite3.Row

        self._apply_pragmas()

        return self._connection

    def _apply_pragmas(self):
        """Apply SQLite PRAGMAs for durability and concurrency."""
        cursor = self._connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        # Track/artist/genre link rows cascade when a track is removed
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        logger.debug("Applied PRAGMAs: journal_mode=WAL, busy_timeout=5000, foreign_keys=ON")

    @contextmanager
    def transaction(self):
        """
        Context manager for explicit transactions.

        Usage:
            with db.transaction() as cursor:
                cursor.execute(...)
            # Commits on success, rolls back on exception
        """
        with self.lock:
            conn = self.connect()
            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN")
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def execute(self, sql: str, parameters=None) -> sqlite3.Cursor:
        """
        Execute a single SQL statement.

        Args:
            sql: SQL statement
            parameters: Optional parameters for parameterized query

        Returns:
            Cursor object
        """
        with self.lock:
            cursor = self.connect().cursor()
            cursor.execute(sql, parameters or ())
            return cursor

    def query_all(self, sql: str, parameters=None) -> list:
        """Execute a SELECT and return all rows."""
        with self.lock:
            cursor = self.execute(sql, parameters)
            try:
                return cursor.fetchall()
            finally:
                cursor.close()

    def query_one(self, sql: str, parameters=None) -> Optional[sqlite3.Row]:
        """Execute a SELECT and return the first row (or None)."""
        with self.lock:
            cursor = self.execute(sql, parameters)
            try:
                return cursor.fetchone()
            finally:
                cursor.close()

    def commit(self):
        """Commit current transaction."""
        if self._connection is not None:
            with self.lock:
                self._connection.commit()

    def close(self):
        """Close database connection."""
        if self._connection is None:
            return
        with self.lock:
            if str(self.db_path) != ":memory:":
                try:
                    self._connection.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                except sqlite3.Error as e:
                    logger.warning(f"Failed to checkpoint WAL: {{'error': {str(e)!r}}}")

            self._connection.close()
            self._connection = None
        logger.info("Database connection closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
