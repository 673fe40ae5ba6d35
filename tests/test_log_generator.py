from datetime import datetime, timedelta

import pytest
import pytz

from pop2exchange.ingestion.entry_parser import parse_log_entry
from pop2exchange.ingestion.pipeline import LogRecordPipeline
from pop2exchange.ingestion.segmenter import is_entry_delimiter
from pop2exchange.tools.log_generator import LogGenerator

START = datetime(2020, 2, 1, 10, 0, 0)


class TestLogGenerator:
    def test_entry_ends_with_delimiter(self):
        entry = LogGenerator(seed=1).generate_entry(START)
        last_line = entry.splitlines(keepends=True)[-1]
        assert is_entry_delimiter(last_line)

    def test_entry_parses_back(self):
        entry = LogGenerator(seed=1).generate_entry(START, error=True)
        body = entry[:entry.rindex("-" * 60)].strip()
        record = parse_log_entry(body)
        assert record.timestamp == START
        assert record.is_error is True

    def test_same_seed_same_output(self):
        assert LogGenerator(seed=5).generate_entries(5, START) == LogGenerator(seed=5).generate_entries(5, START)

    def test_untimed_entries_inherit(self, log_file):
        generator = LogGenerator(seed=3)
        generator.append_log(str(log_file), count=6, start=START, untimed_every=2)

        records = list(LogRecordPipeline(str(log_file)))

        assert len(records) == 6
        # Entries 2 and 4 have no check time of their own
        assert records[2].timestamp == records[1].timestamp
        assert records[4].timestamp == records[3].timestamp

    def test_partial_tail_is_not_ingested(self, log_file):
        generator = LogGenerator(seed=9)
        written = generator.append_log(str(log_file), count=3, start=START, partial_tail=True)

        pipeline = LogRecordPipeline(str(log_file))
        assert len(list(pipeline)) == 3
        assert pipeline.end_offset < written

    def test_crlf_line_endings(self, log_file):
        generator = LogGenerator(seed=2, line_ending="\r\n")
        generator.append_log(str(log_file), count=4, start=START)
        assert b"\r\n" in log_file.read_bytes()
        assert len(list(LogRecordPipeline(str(log_file)))) == 4

    @pytest.mark.parametrize("zone", ["Pacific/Kiritimati", "Pacific/Pago_Pago"])
    def test_default_start_uses_connector_timezone(self, log_file, zone):
        generator = LogGenerator(seed=4, error_rate=0.0, timezone=zone)
        generator.append_log(str(log_file), count=2, interval_seconds=60)

        records = list(LogRecordPipeline(str(log_file)))
        zone_now = datetime.now(pytz.timezone(zone)).replace(tzinfo=None)

        assert abs(zone_now - records[-1].timestamp) < timedelta(minutes=5)
