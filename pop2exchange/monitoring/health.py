"""
Health checks for the storage backend and the connector log file.
"""

import os
import logging
from typing import Dict, Any
from datetime import datetime

from pop2exchange.ingestion.database_operations import DatabaseOperations

logger = logging.getLogger(__name__)


class HealthChecker:
    """Provides health checks for system components."""

    def __init__(self, storage, log_path: str):
        self.storage = storage
        self.log_path = log_path
        self.db_ops = DatabaseOperations(storage)

    def check_database_health(self) -> Dict[str, Any]:
        """Check database connectivity and report the stored record count."""
        start_time = datetime.now()

        try:
            if not self.storage.health_check():
                return {
                    'status': 'unhealthy',
                    'error': 'Database connection failed',
                    'response_time_ms': self._elapsed_ms(start_time),
                    'timestamp': datetime.now().isoformat()
                }

            if not self.db_ops.has_schema():
                return {
                    'status': 'unhealthy',
                    'error': 'Database schema not initialized, run init_database.py',
                    'response_time_ms': self._elapsed_ms(start_time),
                    'timestamp': datetime.now().isoformat()
                }

            return {
                'status': 'healthy',
                'response_time_ms': self._elapsed_ms(start_time),
                'record_count': self.db_ops.record_count(),
                'offset': self.db_ops.read_offset(),
                'timestamp': datetime.now().isoformat()
            }

        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'response_time_ms': self._elapsed_ms(start_time),
                'timestamp': datetime.now().isoformat()
            }

    def check_log_file_health(self) -> Dict[str, Any]:
        """Check that the connector log is readable and how far ingestion lags behind."""
        start_time = datetime.now()

        if not os.path.isfile(self.log_path):
            return {
                'status': 'unhealthy',
                'error': f'Log file not found: {self.log_path}',
                'response_time_ms': self._elapsed_ms(start_time),
                'timestamp': datetime.now().isoformat()
            }

        if not os.access(self.log_path, os.R_OK):
            return {
                'status': 'unhealthy',
                'error': f'Log file not readable: {self.log_path}',
                'response_time_ms': self._elapsed_ms(start_time),
                'timestamp': datetime.now().isoformat()
            }

        size = os.path.getsize(self.log_path)
        result = {
            'status': 'healthy',
            'path': self.log_path,
            'size_bytes': size,
            'response_time_ms': self._elapsed_ms(start_time),
            'timestamp': datetime.now().isoformat()
        }

        try:
            offset = self.db_ops.read_offset()
            result['offset'] = offset
            # A shrunken file is read again from the start on the next cycle
            result['pending_bytes'] = size - offset if offset <= size else size
        except Exception as e:
            logger.warning(f"Could not read ingestion offset: {e}")

        return result

    def comprehensive_health_check(self) -> Dict[str, Any]:
        """Perform comprehensive health check of all components."""
        start_time = datetime.now()

        db_health = self.check_database_health()
        log_health = self.check_log_file_health()

        overall_healthy = (
            db_health['status'] == 'healthy' and
            log_health['status'] == 'healthy'
        )

        return {
            'overall_status': 'healthy' if overall_healthy else 'unhealthy',
            'response_time_ms': self._elapsed_ms(start_time),
            'timestamp': datetime.now().isoformat(),
            'components': {
                'database': db_health,
                'logfile': log_health
            }
        }

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> int:
        return int((datetime.now() - start_time).total_seconds() * 1000)


def main():
    """CLI for health checks."""
    import argparse
    import json

    from pop2exchange.config import Settings
    from pop2exchange.database.storage import create_storage

    parser = argparse.ArgumentParser(description='Health check utility')
    parser.add_argument('--component', choices=['database', 'logfile', 'all'], default='all',
                        help='Component to check')
    parser.add_argument('--format', choices=['json', 'text'], default='text',
                        help='Output format')

    args = parser.parse_args()

    settings = Settings.from_env()
    storage = create_storage(settings)
    health_checker = HealthChecker(storage, settings.log_path)

    try:
        if args.component == 'database':
            result = health_checker.check_database_health()
        elif args.component == 'logfile':
            result = health_checker.check_log_file_health()
        else:
            result = health_checker.comprehensive_health_check()
    finally:
        storage.close()

    if args.format == 'json':
        print(json.dumps(result, indent=2, default=str))
    else:
        print(f"Health Status: {result.get('overall_status', result.get('status', 'unknown'))}")
        print(f"Timestamp: {result.get('timestamp', 'unknown')}")

        if 'response_time_ms' in result:
            print(f"Response Time: {result['response_time_ms']}ms")

        if 'error' in result:
            print(f"Error: {result['error']}")

        if 'components' in result:
            for component, health in result['components'].items():
                print(f"\n{component.title()}:")
                print(f"  Status: {health.get('status', 'unknown')}")
                if 'error' in health:
                    print(f"  Error: {health['error']}")
                if 'pending_bytes' in health:
                    print(f"  Pending: {health['pending_bytes']} bytes")

    status = result.get('overall_status', result.get('status'))
    exit(0 if status == 'healthy' else 1)


if __name__ == "__main__":
    main()
