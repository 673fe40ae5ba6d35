from pop2exchange.monitoring.health import HealthChecker

FIRST_BLOCK = "check at: 1.2.2020 10:00:00\nFoo -> 2 new messages\n----\n"


class TestHealthChecker:
    def test_database_health(self, storage, db_ops, log_file, append_log):
        append_log(FIRST_BLOCK)
        db_ops.run_ingestion_cycle(str(log_file))

        result = HealthChecker(storage, str(log_file)).check_database_health()

        assert result["status"] == "healthy"
        assert result["record_count"] == 1
        assert result["offset"] == len(FIRST_BLOCK) - len("----\n")

    def test_log_file_pending_bytes(self, storage, db_ops, log_file, append_log):
        append_log(FIRST_BLOCK)
        db_ops.run_ingestion_cycle(str(log_file))
        append_log("Bar -> 1 new messages\n----\n")

        result = HealthChecker(storage, str(log_file)).check_log_file_health()

        assert result["status"] == "healthy"
        assert result["size_bytes"] == log_file.stat().st_size
        assert result["pending_bytes"] == len("----\nBar -> 1 new messages\n----\n")

    def test_missing_log_file(self, storage, tmp_path):
        result = HealthChecker(storage, str(tmp_path / "missing.log")).check_log_file_health()
        assert result["status"] == "unhealthy"
        assert "not found" in result["error"]

    def test_missing_schema_is_unhealthy(self, storage, log_file):
        result = HealthChecker(storage, str(log_file)).check_database_health()

        assert result["status"] == "unhealthy"
        assert "schema" in result["error"]
        assert not storage.table_exists("logs")

    def test_log_file_health_on_fresh_database(self, storage, log_file, append_log):
        append_log(FIRST_BLOCK)

        result = HealthChecker(storage, str(log_file)).check_log_file_health()

        assert result["offset"] == 0
        assert result["pending_bytes"] == len(FIRST_BLOCK)

    def test_comprehensive(self, storage, db_ops, log_file):
        db_ops.ensure_schema()
        result = HealthChecker(storage, str(log_file)).comprehensive_health_check()
        assert result["overall_status"] == "healthy"
        assert set(result["components"]) == {"database", "logfile"}
