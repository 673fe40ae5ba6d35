"""
PostgreSQL storage backend with connection pooling.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from pop2exchange.exceptions import StorageUnavailable, TransactionFailure

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages PostgreSQL connections with connection pooling."""

    placeholder = '%s'

    def __init__(self, database_url: str, min_connections: int = 1, max_connections: int = 4):
        if not database_url:
            raise ValueError("DATABASE_URL environment variable is required")
        self.database_url = database_url
        self.min_connections = min_connections
        self.max_connections = max_connections
        self.connection_pool: Optional[pool.ThreadedConnectionPool] = None

    def initialize_pool(self) -> None:
        """Initialize the connection pool."""
        try:
            self.connection_pool = pool.ThreadedConnectionPool(
                minconn=self.min_connections,
                maxconn=self.max_connections,
                dsn=self.database_url
            )
            logger.info(
                f"Database connection pool initialized: {self.min_connections}-{self.max_connections} connections"
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to initialize database connection pool: {e}")
            raise StorageUnavailable(f"Cannot connect to PostgreSQL: {e}") from e

    @contextmanager
    def get_connection(self):
        """Borrow a connection from the pool."""
        if not self.connection_pool:
            self.initialize_pool()

        try:
            connection = self.connection_pool.getconn()
        except (psycopg2.Error, pool.PoolError) as e:
            logger.error(f"Failed to get database connection: {e}")
            raise StorageUnavailable(f"No PostgreSQL connection available: {e}") from e

        try:
            yield connection
        finally:
            self.connection_pool.putconn(connection)

    @contextmanager
    def transaction(self):
        """Run the enclosed statements in one transaction and yield its cursor."""
        with self.get_connection() as connection:
            cursor = connection.cursor(cursor_factory=RealDictCursor)
            try:
                yield cursor
            except psycopg2.Error as e:
                connection.rollback()
                logger.error(f"Transaction rolled back: {e}")
                raise TransactionFailure(str(e)) from e
            except BaseException:
                connection.rollback()
                raise
            finally:
                cursor.close()

            try:
                connection.commit()
            except psycopg2.Error as e:
                connection.rollback()
                raise TransactionFailure(f"Commit failed: {e}") from e

    def execute_query(self, query: str, params: Optional[tuple] = None, fetch: bool = True):
        """Execute a query with automatic connection management."""
        with self.get_connection() as connection:
            try:
                with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(query, params)

                    if fetch:
                        results = [dict(row) for row in cursor.fetchall()] if cursor.description else []
                        connection.rollback()
                        return results

                    connection.commit()
                    return cursor.rowcount

            except psycopg2.Error as e:
                connection.rollback()
                logger.error(f"Database query failed: {e}")
                raise

    def health_check(self) -> bool:
        """Check if database is healthy and accessible."""
        try:
            result = self.execute_query("SELECT 1 as health_check")
            return len(result) > 0 and result[0]['health_check'] == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def table_exists(self, table_name: str) -> bool:
        rows = self.execute_query("SELECT to_regclass(%s) IS NOT NULL AS present", (table_name,))
        return bool(rows and rows[0]['present'])

    def schema_statements(self) -> List[str]:
        """DDL for the log and metadata tables."""
        return [
            """
            CREATE TABLE IF NOT EXISTS logs (
                id          SERIAL PRIMARY KEY,
                timestamp   TIMESTAMP NOT NULL,
                error       BOOLEAN NOT NULL,
                mail_count  INTEGER NOT NULL,
                message     TEXT NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS metadata (
                key   TEXT PRIMARY KEY,
                value BIGINT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs (timestamp)",
        ]

    def to_db_timestamp(self, value: datetime) -> datetime:
        return value

    def from_db_timestamp(self, value) -> Optional[datetime]:
        return value

    def close(self) -> None:
        """Close all connections in the pool."""
        if self.connection_pool:
            try:
                self.connection_pool.closeall()
                logger.info("All database connections closed")
            except psycopg2.Error as e:
                logger.error(f"Error closing database connections: {e}")
            finally:
                self.connection_pool = None

    def __repr__(self):
        return f"DatabaseManager(pool={self.min_connections}-{self.max_connections})"
