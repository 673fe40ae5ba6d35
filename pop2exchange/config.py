"""
Runtime configuration loaded from the environment and an optional .env file.
"""

import os
from typing import Optional

import pytz
from dotenv import find_dotenv, load_dotenv

SUPPORTED_BACKENDS = ('sqlite', 'postgres')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'")


class Settings:
    """Settings for the exporter worker, metrics responder and tools."""

    def __init__(
        self,
        log_path: str = '/media/logs/Pop2Exchange.log',
        database_backend: str = 'sqlite',
        sqlite_db_path: str = 'pop2exchange.sqlite',
        database_url: Optional[str] = None,
        ingestion_interval_seconds: int = 60,
        metrics_host: str = '0.0.0.0',
        metrics_port: int = 8000,
        connector_timezone: str = 'Europe/Berlin',
        log_level: str = 'INFO',
        log_format: str = 'json',
        log_file: Optional[str] = None,
    ):
        backend = database_backend.strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"DATABASE_BACKEND must be one of {', '.join(SUPPORTED_BACKENDS)}, got '{database_backend}'"
            )
        if backend == 'postgres' and not database_url:
            raise ValueError("DATABASE_URL environment variable is required for the postgres backend")
        if ingestion_interval_seconds <= 0:
            raise ValueError("INGESTION_INTERVAL_SECONDS must be positive")
        try:
            pytz.timezone(connector_timezone)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"CONNECTOR_TIMEZONE '{connector_timezone}' is not a known time zone")

        self.log_path = log_path
        self.database_backend = backend
        self.sqlite_db_path = sqlite_db_path
        self.database_url = database_url
        self.ingestion_interval_seconds = ingestion_interval_seconds
        self.metrics_host = metrics_host
        self.metrics_port = metrics_port
        self.connector_timezone = connector_timezone
        self.log_level = log_level
        self.log_format = log_format
        self.log_file = log_file

    @property
    def timezone(self):
        """The pytz zone the connector writes its check times in."""
        return pytz.timezone(self.connector_timezone)

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables, reading .env first."""
        load_dotenv(find_dotenv(usecwd=True))

        return cls(
            log_path=os.getenv('POP2EXCHANGE_LOG_PATH', '/media/logs/Pop2Exchange.log'),
            database_backend=os.getenv('DATABASE_BACKEND', 'sqlite'),
            sqlite_db_path=os.getenv('SQLITE_DB_PATH', 'pop2exchange.sqlite'),
            database_url=os.getenv('DATABASE_URL'),
            ingestion_interval_seconds=_env_int('INGESTION_INTERVAL_SECONDS', 60),
            metrics_host=os.getenv('METRICS_HOST', '0.0.0.0'),
            metrics_port=_env_int('METRICS_PORT', 8000),
            connector_timezone=os.getenv('CONNECTOR_TIMEZONE', 'Europe/Berlin'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_format=os.getenv('LOG_FORMAT', 'json'),
            log_file=os.getenv('LOG_FILE'),
        )
