"""
Lazy pipeline turning the unread part of the connector log into LogRecords.
"""

from datetime import datetime
from typing import Optional

from pop2exchange.ingestion.entry_parser import LogRecord, parse_log_entry
from pop2exchange.ingestion.segmenter import LogSegmenter


class LogRecordPipeline:
    """
    Iterates the records of a log file starting at a byte offset.

    Once exhausted, ``end_offset`` is the checkpoint to persist together with
    the yielded records.
    """

    def __init__(self, path: str, offset: int = 0):
        self.segmenter = LogSegmenter(path, offset)
        self.last_timestamp: Optional[datetime] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __iter__(self):
        return self

    def __next__(self) -> LogRecord:
        if not self.has_next():
            raise StopIteration
        return self.get_next()

    @property
    def end_offset(self) -> int:
        return self.segmenter.end_offset

    def has_next(self) -> bool:
        return self.segmenter.has_next()

    def get_next(self) -> LogRecord:
        record = parse_log_entry(self.segmenter.get_next(), self.last_timestamp)
        self.last_timestamp = record.timestamp
        return record

    def close(self) -> None:
        self.segmenter.close()
