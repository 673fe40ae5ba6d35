import pytest

from pop2exchange.monitoring.logger_config import CorrelationLogger, OperationLogger


class TestOperationLogger:
    def test_returns_correlation_logger(self):
        with OperationLogger("ingestion_cycle", correlation_id="abc") as op_logger:
            assert isinstance(op_logger, CorrelationLogger)
            assert op_logger.correlation_id == "abc"

    def test_does_not_suppress_exceptions(self):
        with pytest.raises(RuntimeError):
            with OperationLogger("ingestion_cycle"):
                raise RuntimeError("boom")
