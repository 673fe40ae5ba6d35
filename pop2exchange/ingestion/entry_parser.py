"""
Parser for single Pop2Exchange log entries.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from pop2exchange.exceptions import MalformedTimestamp, MissingTimestamp

# Date format of the connector's "Check at" lines, e.g. 1.2.2020 10:00:00
LOG_DATE_FORMAT = '%d.%m.%Y %H:%M:%S'

CHECK_TIME_PATTERN = re.compile(r'check at( local time)*: ([^\n\r]+)', re.IGNORECASE)
NEW_MESSAGES_PATTERN = re.compile(r'[a-zA-Z]+ -> ([0-9]+) new messages')
ERROR_MARKER = 'Error'


class LogRecord(BaseModel):
    """A structured connector log entry."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    is_error: bool
    mail_count: int
    raw_text: str

    @field_validator('mail_count')
    @classmethod
    def validate_mail_count(cls, v):
        if v < 0:
            raise ValueError('Mail count cannot be negative')
        return v


def parse_check_time(value: str) -> datetime:
    """Parse a check time written by the connector."""
    try:
        return datetime.strptime(value.strip(), LOG_DATE_FORMAT)
    except ValueError:
        raise MalformedTimestamp(
            f"Invalid check time: '{value}' - expected format 'D.M.YYYY HH:MM:SS'"
        )


def parse_log_entry(raw_entry: str, inherited_timestamp: Optional[datetime] = None) -> LogRecord:
    """
    Parse one raw entry into a LogRecord.

    Entries without a "Check at" line take the timestamp of the previous
    record, passed in as ``inherited_timestamp``.
    """
    match = CHECK_TIME_PATTERN.search(raw_entry)
    if match:
        timestamp = parse_check_time(match.group(2))
    elif inherited_timestamp is not None:
        timestamp = inherited_timestamp
    else:
        raise MissingTimestamp(
            "Log entry has no timestamp and no previous entry was given to deduce one"
        )

    mail_count = sum(int(count) for count in NEW_MESSAGES_PATTERN.findall(raw_entry))

    return LogRecord(
        timestamp=timestamp,
        is_error=ERROR_MARKER in raw_entry,
        mail_count=mail_count,
        raw_text=raw_entry,
    )
