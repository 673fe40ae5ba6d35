"""
Log generator for simulating the Pop2Exchange connector log.
"""

import os
import random
import argparse
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional
import pytz


# Mailboxes polled by the simulated connector
MAILBOXES = [
    "info", "sales", "support", "billing", "office", "jobs", "service"
]

ERROR_MESSAGES = [
    "Error: connection to pop3 server timed out",
    "Error: authentication failed for mailbox",
    "Error: Exchange server refused the message",
]

DELIMITER = "-" * 60

DEFAULT_TIMEZONE = 'Europe/Berlin'


def _format_check_time(timestamp: datetime) -> str:
    # The connector does not zero-pad day and month
    return f"{timestamp.day}.{timestamp.month}.{timestamp.year} {timestamp.strftime('%H:%M:%S')}"


class LogGenerator:
    """Generates realistic Pop2Exchange check blocks for testing."""

    def __init__(self, seed: Optional[int] = None, error_rate: float = 0.1, line_ending: str = "\n",
                 timezone: str = DEFAULT_TIMEZONE):
        self.random = random.Random(seed)
        self.error_rate = error_rate
        self.line_ending = line_ending
        self.timezone = pytz.timezone(timezone)

    def generate_entry(self, timestamp: Optional[datetime], error: Optional[bool] = None) -> str:
        """Generate one check block, closed by a delimiter line.

        A ``timestamp`` of None produces a block without a "Check at" line,
        which inherits the previous block's time when parsed.
        """
        if error is None:
            error = self.random.random() < self.error_rate

        lines = []
        if timestamp is not None:
            lines.append(f"Check at local time: {_format_check_time(timestamp)}")

        for mailbox in self.random.sample(MAILBOXES, self.random.randint(1, 3)):
            lines.append(f"Connecting to pop3 mailbox {mailbox}@example.com")
            count = self.random.choice([0, 0, 1, 2, 3, 5, 8])
            if count:
                lines.append(f"{mailbox} -> {count} new messages")

        if error:
            lines.append(self.random.choice(ERROR_MESSAGES))

        lines.append(DELIMITER)
        return self.line_ending.join(lines) + self.line_ending

    def generate_entries(self, count: int, start: datetime, interval_seconds: int = 60,
                         untimed_every: int = 0) -> List[str]:
        """Generate ``count`` consecutive blocks starting at ``start``."""
        entries = []
        for i in range(count):
            timestamp = start + timedelta(seconds=i * interval_seconds)
            # The first block always carries its own timestamp
            if untimed_every and i > 0 and i % untimed_every == 0:
                timestamp = None
            entries.append(self.generate_entry(timestamp))
        return entries

    def append_log(self, output_path: str, count: int = 10, start: Optional[datetime] = None,
                   interval_seconds: int = 60, untimed_every: int = 0,
                   partial_tail: bool = False) -> int:
        """Append generated blocks to a log file and return the bytes written.

        With ``partial_tail`` an unterminated block is appended last, the way
        the file looks while the connector is still writing.
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        if start is None:
            now = datetime.now(self.timezone).replace(tzinfo=None, microsecond=0)
            start = now - timedelta(seconds=count * interval_seconds)

        text = "".join(self.generate_entries(count, start, interval_seconds, untimed_every))
        if partial_tail:
            tail = self.generate_entry(start + timedelta(seconds=count * interval_seconds), error=False)
            text += tail[:tail.rindex(DELIMITER)]

        data = text.encode('utf-8')
        with open(output_file, 'ab') as f:
            f.write(data)

        return len(data)


def main():
    """Main entry point for log generation."""
    parser = argparse.ArgumentParser(description='Generate Pop2Exchange connector log data for testing')
    parser.add_argument('--output', '-o', required=True, help='Log file to append to')
    parser.add_argument('--entries', '-n', type=int, default=10, help='Number of check blocks to generate')
    parser.add_argument('--interval', type=int, default=60, help='Seconds between checks')
    parser.add_argument('--error-rate', type=float, default=0.1, help='Share of blocks with an error')
    parser.add_argument('--untimed-every', type=int, default=0,
                        help='Omit the check time on every Nth block')
    parser.add_argument('--partial-tail', action='store_true',
                        help='Finish with a block that has no closing delimiter')
    parser.add_argument('--crlf', action='store_true', help='Use Windows line endings')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--timezone', default=os.getenv('CONNECTOR_TIMEZONE', DEFAULT_TIMEZONE),
                        help='Zone the connector writes its check times in')

    args = parser.parse_args()

    generator = LogGenerator(
        seed=args.seed,
        error_rate=args.error_rate,
        line_ending="\r\n" if args.crlf else "\n",
        timezone=args.timezone
    )
    written = generator.append_log(
        args.output,
        count=args.entries,
        interval_seconds=args.interval,
        untimed_every=args.untimed_every,
        partial_tail=args.partial_tail
    )

    print(f"Appended {args.entries} entries ({written} bytes) to {args.output}")


if __name__ == "__main__":
    main()
