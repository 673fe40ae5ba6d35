from datetime import datetime

import pytest
from pydantic import ValidationError

from pop2exchange.exceptions import MalformedTimestamp, MissingTimestamp
from pop2exchange.ingestion.entry_parser import LogRecord, parse_check_time, parse_log_entry


class TestParseCheckTime:
    def test_unpadded_day_and_month(self):
        assert parse_check_time("1.2.2020 10:00:00") == datetime(2020, 2, 1, 10, 0, 0)

    def test_padded_values_and_whitespace(self):
        assert parse_check_time(" 24.12.2019 23:59:01 ") == datetime(2019, 12, 24, 23, 59, 1)

    def test_invalid_value(self):
        with pytest.raises(MalformedTimestamp):
            parse_check_time("2020-02-01 10:00:00")


class TestParseLogEntry:
    def test_explicit_timestamp(self):
        record = parse_log_entry("check at: 1.2.2020 10:00:00\nFoo -> 2 new messages")
        assert record.timestamp == datetime(2020, 2, 1, 10, 0, 0)
        assert record.is_error is False
        assert record.mail_count == 2

    def test_local_time_variant_is_case_insensitive(self):
        record = parse_log_entry("Check At Local Time: 3.4.2021 08:15:30\r\nnothing new")
        assert record.timestamp == datetime(2021, 4, 3, 8, 15, 30)

    def test_inherits_timestamp(self):
        previous = parse_log_entry("check at: 1.2.2020 10:00:00\nFoo -> 2 new messages")
        record = parse_log_entry("Bar -> 1 new messages", previous.timestamp)
        assert record.timestamp == datetime(2020, 2, 1, 10, 0, 0)
        assert record.mail_count == 1

    def test_own_timestamp_wins_over_inherited(self):
        record = parse_log_entry("check at: 2.2.2020 11:00:00", datetime(2020, 2, 1, 10, 0, 0))
        assert record.timestamp == datetime(2020, 2, 2, 11, 0, 0)

    def test_missing_timestamp_without_previous_entry(self):
        with pytest.raises(MissingTimestamp):
            parse_log_entry("Bar -> 1 new messages")

    def test_malformed_timestamp(self):
        with pytest.raises(MalformedTimestamp):
            parse_log_entry("check at: yesterday")

    def test_mail_counts_are_summed(self):
        record = parse_log_entry(
            "check at: 1.2.2020 10:00:00\nA -> 3 new messages\nB -> 5 new messages"
        )
        assert record.mail_count == 8

    def test_no_mail_count(self):
        record = parse_log_entry("check at: 1.2.2020 10:00:00\nno new mail")
        assert record.mail_count == 0

    def test_error_marker_is_case_sensitive(self):
        assert parse_log_entry("check at: 1.2.2020 10:00:00\nError: timeout").is_error is True
        assert parse_log_entry("check at: 1.2.2020 10:00:00\nerror: timeout").is_error is False
        assert parse_log_entry("check at: 1.2.2020 10:00:00\nSocketError raised").is_error is True

    def test_raw_text_is_kept_verbatim(self):
        text = "check at: 1.2.2020 10:00:00\r\nFoo -> 2 new messages"
        assert parse_log_entry(text).raw_text == text


class TestLogRecord:
    def test_record_is_immutable(self):
        record = parse_log_entry("check at: 1.2.2020 10:00:00")
        with pytest.raises(ValidationError):
            record.mail_count = 5

    def test_negative_mail_count_rejected(self):
        with pytest.raises(ValidationError):
            LogRecord(timestamp=datetime(2020, 2, 1), is_error=False, mail_count=-1, raw_text="")
