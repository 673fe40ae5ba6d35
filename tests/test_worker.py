import threading

import pytest

from pop2exchange.config import Settings
from pop2exchange.exceptions import FileUnreadable
from pop2exchange.ingestion.worker import IngestionWorker

FIRST_BLOCK = "check at: 1.2.2020 10:00:00\nFoo -> 2 new messages\n----\n"


@pytest.fixture
def worker(settings, storage):
    return IngestionWorker(settings, storage)


class TestIngestionWorker:
    def test_run_once(self, worker, db_ops, append_log):
        append_log(FIRST_BLOCK)

        result = worker.run_once()

        assert result.records_inserted == 1
        assert db_ops.total_mail_count() == 2

    def test_run_once_propagates_failures(self, tmp_path, storage):
        settings = Settings(log_path=str(tmp_path / "missing.log"), ingestion_interval_seconds=1)
        worker = IngestionWorker(settings, storage)
        with pytest.raises(FileUnreadable):
            worker.run_once()

    def test_run_continuous_stops_on_event(self, worker, append_log, monkeypatch):
        append_log(FIRST_BLOCK)
        stop_event = threading.Event()
        calls = []
        real_run_once = worker.run_once

        def run_once():
            calls.append(real_run_once())
            stop_event.set()

        monkeypatch.setattr(worker, "run_once", run_once)
        worker.run_continuous(stop_event)

        assert len(calls) == 1
        assert calls[0].records_inserted == 1

    def test_run_continuous_survives_failed_cycle(self, worker, monkeypatch):
        stop_event = threading.Event()
        attempts = []

        def run_once():
            attempts.append(1)
            if len(attempts) == 1:
                raise FileUnreadable("/media/logs/Pop2Exchange.log", "No such file")
            stop_event.set()

        monkeypatch.setattr(worker, "run_once", run_once)
        worker.run_continuous(stop_event)

        assert len(attempts) == 2

    def test_health_check(self, worker, append_log):
        append_log(FIRST_BLOCK)
        worker.run_once()
        assert worker.health_check() is True

    def test_health_check_without_log_file(self, tmp_path, storage):
        settings = Settings(log_path=str(tmp_path / "missing.log"), ingestion_interval_seconds=1)
        assert IngestionWorker(settings, storage).health_check() is False
