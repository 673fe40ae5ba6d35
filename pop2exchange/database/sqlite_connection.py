"""
SQLite storage backend, the default store for the exporter.
"""

import os
import logging
import sqlite3
from datetime import datetime
from typing import List, Dict, Any, Optional
from contextlib import contextmanager

from pop2exchange.exceptions import StorageUnavailable, TransactionFailure

logger = logging.getLogger(__name__)

# Timestamps are stored as sortable text
DB_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SQLiteManager:
    """SQLite database manager."""

    placeholder = '?'

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._ensure_db_directory()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        try:
            # Autocommit mode; transactions are opened explicitly
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        except sqlite3.Error as e:
            logger.error(f"Failed to open SQLite database {self.db_path}: {e}")
            raise StorageUnavailable(f"Cannot open SQLite database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def get_connection(self):
        """Get a database connection."""
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Run the enclosed statements in one transaction and yield its cursor."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise TransactionFailure(f"Could not begin transaction: {e}") from e

            try:
                yield cursor
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Transaction rolled back: {e}")
                raise TransactionFailure(str(e)) from e
            except BaseException:
                conn.rollback()
                raise

            try:
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise TransactionFailure(f"Commit failed: {e}") from e

    def execute_query(self, query: str, params: Optional[tuple] = None, fetch: bool = True) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)

            if fetch:
                rows = cursor.fetchall()
                return [dict(row) for row in rows]
            return cursor.rowcount

    def health_check(self) -> bool:
        """Check if database is healthy."""
        try:
            result = self.execute_query("SELECT 1 as health_check")
            return len(result) > 0 and result[0]['health_check'] == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def table_exists(self, table_name: str) -> bool:
        rows = self.execute_query(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (table_name,)
        )
        return len(rows) > 0

    def schema_statements(self) -> List[str]:
        """DDL for the log and metadata tables."""
        return [
            """
            CREATE TABLE IF NOT EXISTS "logs" (
                "id"          INTEGER PRIMARY KEY NOT NULL UNIQUE,
                "timestamp"   DATETIME NOT NULL,
                "error"       BOOLEAN NOT NULL,
                "mail_count"  INTEGER NOT NULL,
                "message"     TEXT NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS "metadata" (
                "key"   TEXT PRIMARY KEY NOT NULL UNIQUE,
                "value" NOT NULL
            )
            """,
            'CREATE INDEX IF NOT EXISTS "idx_logs_timestamp" ON "logs" ("timestamp")',
        ]

    def to_db_timestamp(self, value: datetime) -> str:
        return value.strftime(DB_DATE_FORMAT)

    def from_db_timestamp(self, value) -> Optional[datetime]:
        if value is None:
            return None
        return datetime.strptime(value, DB_DATE_FORMAT)

    def close(self) -> None:
        """Connections are opened per call; nothing to release."""

    def __repr__(self):
        return f"SQLiteManager({self.db_path!r})"
