"""
Worker that polls the connector log and serves the metrics endpoint.
"""

import logging
import threading
import uuid
from typing import Optional

from pop2exchange.config import Settings
from pop2exchange.database.storage import create_storage
from pop2exchange.ingestion.database_operations import DatabaseOperations, IngestionResult
from pop2exchange.monitoring.health import HealthChecker
from pop2exchange.monitoring.logger_config import IngestionLogger, OperationLogger
from pop2exchange.monitoring.metrics import connector_now, create_app

logger = logging.getLogger(__name__)


class IngestionWorker:
    """Runs ingestion cycles one after another against a single storage handle."""

    def __init__(self, settings: Settings, storage):
        self.settings = settings
        self.storage = storage
        self.db_ops = DatabaseOperations(storage)
        self.polling_interval = settings.ingestion_interval_seconds

        logger.info("Ingestion worker initialized")

    def run_once(self) -> IngestionResult:
        """Run a single ingestion cycle."""
        correlation_id = str(uuid.uuid4())

        with OperationLogger(
            "ingestion_cycle",
            correlation_id=correlation_id,
            log_file=self.settings.log_path
        ) as op_logger:
            result = self.db_ops.run_ingestion_cycle(self.settings.log_path)
            op_logger.info(
                "Ingestion cycle summary",
                records_inserted=result.records_inserted,
                previous_offset=result.previous_offset,
                new_offset=result.new_offset
            )
            self._log_summary(op_logger)

        return result

    def _log_summary(self, op_logger) -> None:
        snapshot = self.db_ops.get_metrics_snapshot()
        now = connector_now(self.settings)

        op_logger.info("Total number of received mails", total=snapshot.total_mail_count or 0)

        if snapshot.last_error is not None:
            op_logger.info("Last error", days_ago=(now.date() - snapshot.last_error.date()).days)
        else:
            op_logger.info("Last error", days_ago=None)

        if snapshot.last_check is not None:
            minutes_ago = round((now - snapshot.last_check).total_seconds() / 60)
            op_logger.info("Last check", minutes_ago=minutes_ago)
        else:
            op_logger.info("Last check", minutes_ago=None)

    def run_continuous(self, stop_event: Optional[threading.Event] = None) -> None:
        """Run the worker continuously with polling."""
        stop_event = stop_event or threading.Event()
        logger.info(f"Starting continuous ingestion worker (interval: {self.polling_interval}s)")

        try:
            while not stop_event.is_set():
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"Ingestion cycle failed: {type(e).__name__}: {e}")

                logger.info(f"Waiting {self.polling_interval} seconds for next cycle")
                stop_event.wait(self.polling_interval)

        except KeyboardInterrupt:
            logger.info("Ingestion worker stopped by user")

        logger.info("Ingestion worker stopped")

    def health_check(self) -> bool:
        """Perform health check of all components."""
        result = HealthChecker(self.storage, self.settings.log_path).comprehensive_health_check()
        healthy = result['overall_status'] == 'healthy'

        logger.info(
            f"Health check - Database: {result['components']['database']['status']}, "
            f"Log file: {result['components']['logfile']['status']}, Overall: {healthy}"
        )

        return healthy


def serve(worker: IngestionWorker, settings: Settings) -> None:
    """Poll in a background thread while serving /metrics in the foreground."""
    stop_event = threading.Event()
    poller = threading.Thread(
        target=worker.run_continuous,
        args=(stop_event,),
        name="ingestion-worker",
        daemon=True
    )
    poller.start()

    app = create_app(worker.storage, settings)
    logger.info(f"Serving metrics on {settings.metrics_host}:{settings.metrics_port}")
    try:
        app.run(host=settings.metrics_host, port=settings.metrics_port)
    finally:
        stop_event.set()
        poller.join(timeout=5)


def main():
    """Main entry point for the ingestion worker."""
    import argparse

    parser = argparse.ArgumentParser(description='Ingest the Pop2Exchange connector log')
    parser.add_argument('--once', action='store_true', help='Run once and exit')
    parser.add_argument('--health-check', action='store_true', help='Perform health check')
    parser.add_argument('--serve', action='store_true',
                        help='Poll continuously and serve /metrics over HTTP')

    args = parser.parse_args()

    settings = Settings.from_env()
    IngestionLogger.setup_logging(settings.log_level, settings.log_format, settings.log_file)

    storage = create_storage(settings)
    worker = IngestionWorker(settings, storage)

    try:
        if args.health_check:
            healthy = worker.health_check()
            exit(0 if healthy else 1)
        elif args.once:
            try:
                result = worker.run_once()
                print(f"Ingestion cycle completed: {result.records_inserted} new entries, "
                      f"offset {result.new_offset}")
            except Exception as e:
                print(f"Ingestion cycle failed: {e}")
                exit(1)
        elif args.serve:
            serve(worker, settings)
        else:
            worker.run_continuous()
    finally:
        storage.close()


if __name__ == "__main__":
    main()
