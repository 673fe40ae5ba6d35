"""
Error types raised by the ingestion pipeline and the storage backends.
"""


class IngestionError(Exception):
    """Base class for failures that abort an ingestion cycle."""


class EntryParseError(IngestionError):
    """A raw log entry could not be turned into a record."""


class MissingTimestamp(EntryParseError):
    """The entry has no timestamp and there is no previous record to inherit one from."""


class MalformedTimestamp(EntryParseError):
    """The entry carries a check time that does not match the log date format."""


class FileUnreadable(IngestionError):
    """The connector log file cannot be opened or inspected."""

    def __init__(self, path: str, reason: str = None):
        self.path = path
        self.reason = reason
        message = f"Cannot read log file {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StorageUnavailable(IngestionError):
    """The storage backend cannot be reached."""


class TransactionFailure(IngestionError):
    """A statement inside the ingestion transaction failed; the transaction was rolled back."""
