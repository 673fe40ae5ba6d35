"""
Groups the lines of the connector log into delimited entries.

The connector closes every check block with a line of dashes. Reading starts
at a byte offset and ``end_offset`` tracks the position right after the last
content line of the last closed entry, so a resumed run still sees the
delimiter that closes the next entry.
"""

import logging
import os
from typing import BinaryIO, List, Optional

from pop2exchange.exceptions import FileUnreadable

logger = logging.getLogger(__name__)


def is_entry_delimiter(line: str) -> bool:
    """Return True if ``line`` (including its line terminator) closes a log entry."""
    return len(line) > 3 and all(char == '-' for char in line[:-2])


class LogSegmenter:
    """Lazy, single-pass iterator over the raw entries of a log file."""

    def __init__(self, path: str, offset: int = 0):
        self.path = path
        self.start_offset = offset
        self.end_offset = offset
        self._file: Optional[BinaryIO] = None
        self._size_at_open = 0
        self._pending: Optional[str] = None
        self._exhausted = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __iter__(self):
        return self

    def __next__(self) -> str:
        if not self.has_next():
            raise StopIteration
        return self.get_next()

    def has_next(self) -> bool:
        """Return True if another complete entry is available."""
        if self._pending is None and not self._exhausted:
            self._pending = self._read_entry()
        return self._pending is not None

    def get_next(self) -> str:
        """Return the next complete entry."""
        if not self.has_next():
            raise StopIteration
        entry, self._pending = self._pending, None
        return entry

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def _open(self) -> None:
        try:
            size = os.path.getsize(self.path)
        except OSError as e:
            raise FileUnreadable(self.path, str(e)) from e

        if size < self.start_offset:
            logger.warning(
                f"Log file {self.path} is smaller ({size} bytes) than offset "
                f"{self.start_offset}, reading from the beginning"
            )
            self.start_offset = 0
            self.end_offset = 0

        try:
            self._file = open(self.path, 'rb')
            # Appends after this point are left for the next run
            self._size_at_open = os.fstat(self._file.fileno()).st_size
            self._file.seek(self.start_offset)
        except OSError as e:
            self.close()
            raise FileUnreadable(self.path, str(e)) from e

    def _read_line(self) -> Optional[str]:
        remaining = self._size_at_open - self._file.tell()
        if remaining <= 0:
            return None
        raw = self._file.readline(remaining)
        if not raw:
            return None
        return raw.decode('utf-8', errors='replace')

    def _read_entry(self) -> Optional[str]:
        if self._file is None:
            self._open()

        lines: List[str] = []
        content_end = self.end_offset

        while True:
            try:
                line = self._read_line()
            except OSError as e:
                self.close()
                raise FileUnreadable(self.path, str(e)) from e

            if line is None:
                # Unterminated tail is re-read once its delimiter is written
                self._exhausted = True
                self.close()
                return None

            if is_entry_delimiter(line):
                if lines:
                    # Blank lines alone still form an (empty) entry
                    self.end_offset = content_end
                    return ''.join(lines).strip()
                continue

            lines.append(line)
            content_end = self._file.tell()
