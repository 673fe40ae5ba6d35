"""
Database operations for the ingestion pipeline.

Records and the log file offset are written in one transaction, so the
offset only advances together with the rows it accounts for.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from pop2exchange.ingestion.pipeline import LogRecordPipeline

logger = logging.getLogger(__name__)

OFFSET_KEY = 'offset'
SCHEMA_TABLES = ('logs', 'metadata')


class IngestionResult(BaseModel):
    """Outcome of one ingestion cycle."""

    records_inserted: int
    previous_offset: int
    new_offset: int


class MetricsSnapshot(BaseModel):
    """Aggregates over the logs table; None means the table is empty."""

    total_mail_count: Optional[int] = None
    last_error: Optional[datetime] = None
    last_check: Optional[datetime] = None


class DatabaseOperations:
    """Persists connector log records and answers aggregate queries."""

    def __init__(self, storage):
        self.storage = storage

    def ensure_schema(self) -> None:
        """Create the logs and metadata tables if they do not exist."""
        with self.storage.transaction() as cursor:
            for statement in self.storage.schema_statements():
                cursor.execute(statement)

    def run_ingestion_cycle(self, log_path: str) -> IngestionResult:
        """Insert every record not yet ingested from ``log_path`` and advance the offset."""
        self.ensure_schema()
        p = self.storage.placeholder

        insert_query = (
            f"INSERT INTO logs (timestamp, error, mail_count, message) VALUES ({p}, {p}, {p}, {p})"
        )

        with self.storage.transaction() as cursor:
            previous_offset = self._read_offset(cursor)
            logger.info(f"Reading log file {log_path} from offset {previous_offset}")

            inserted = 0
            with LogRecordPipeline(log_path, previous_offset) as pipeline:
                for record in pipeline:
                    cursor.execute(insert_query, (
                        self.storage.to_db_timestamp(record.timestamp),
                        record.is_error,
                        record.mail_count,
                        record.raw_text,
                    ))
                    inserted += 1
                new_offset = pipeline.end_offset

            cursor.execute(
                f"UPDATE metadata SET value = {p} WHERE key = {p}",
                (new_offset, OFFSET_KEY)
            )

        logger.info(f"Inserted {inserted} new log entries, offset {previous_offset} -> {new_offset}")
        return IngestionResult(
            records_inserted=inserted,
            previous_offset=previous_offset,
            new_offset=new_offset,
        )

    def _read_offset(self, cursor) -> int:
        p = self.storage.placeholder
        cursor.execute(f"SELECT value FROM metadata WHERE key = {p}", (OFFSET_KEY,))
        row = cursor.fetchone()
        if row is None:
            cursor.execute(
                f"INSERT INTO metadata (key, value) VALUES ({p}, {p})",
                (OFFSET_KEY, 0)
            )
            return 0
        return int(row['value'])

    def has_schema(self) -> bool:
        return all(self.storage.table_exists(table) for table in SCHEMA_TABLES)

    def read_offset(self) -> int:
        """Return the last committed offset, or 0 before the first run."""
        if not self.storage.table_exists("metadata"):
            return 0
        p = self.storage.placeholder
        rows = self.storage.execute_query(
            f"SELECT value FROM metadata WHERE key = {p}", (OFFSET_KEY,)
        )
        return int(rows[0]['value']) if rows else 0

    def record_count(self) -> int:
        rows = self.storage.execute_query("SELECT COUNT(*) AS count FROM logs")
        return int(rows[0]['count'])

    def total_mail_count(self) -> Optional[int]:
        """Sum of all received mails, or None when no records exist."""
        rows = self.storage.execute_query("SELECT SUM(mail_count) AS total FROM logs")
        total = rows[0]['total'] if rows else None
        return None if total is None else int(total)

    def last_error_timestamp(self) -> Optional[datetime]:
        """Timestamp of the most recent entry flagged as an error."""
        p = self.storage.placeholder
        rows = self.storage.execute_query(
            f"SELECT MAX(timestamp) AS ts FROM logs WHERE error = {p}", (True,)
        )
        return self.storage.from_db_timestamp(rows[0]['ts']) if rows else None

    def last_check_timestamp(self) -> Optional[datetime]:
        """Timestamp of the most recent connector check."""
        rows = self.storage.execute_query("SELECT MAX(timestamp) AS ts FROM logs")
        return self.storage.from_db_timestamp(rows[0]['ts']) if rows else None

    def get_metrics_snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            total_mail_count=self.total_mail_count(),
            last_error=self.last_error_timestamp(),
            last_check=self.last_check_timestamp(),
        )


def run_ingestion_cycle(log_path: str, storage) -> IngestionResult:
    """Run one ingestion cycle of ``log_path`` against ``storage``."""
    return DatabaseOperations(storage).run_ingestion_cycle(log_path)
