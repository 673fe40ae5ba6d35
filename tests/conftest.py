import pytest

from pop2exchange.config import Settings
from pop2exchange.database.sqlite_connection import SQLiteManager
from pop2exchange.ingestion.database_operations import DatabaseOperations


@pytest.fixture
def log_file(tmp_path):
    """Path of an empty connector log; write to it with write_bytes/append."""
    path = tmp_path / "Pop2Exchange.log"
    path.write_bytes(b"")
    return path


@pytest.fixture
def append_log(log_file):
    def _append(text):
        with open(log_file, "ab") as f:
            f.write(text.encode("utf-8"))
        return log_file.stat().st_size
    return _append


@pytest.fixture
def storage(tmp_path):
    return SQLiteManager(str(tmp_path / "db" / "pop2exchange.sqlite"))


@pytest.fixture
def db_ops(storage):
    return DatabaseOperations(storage)


@pytest.fixture
def settings(tmp_path, log_file):
    return Settings(
        log_path=str(log_file),
        sqlite_db_path=str(tmp_path / "db" / "pop2exchange.sqlite"),
        ingestion_interval_seconds=1,
        connector_timezone="Europe/Berlin",
    )
