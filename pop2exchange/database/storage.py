"""
Storage backend selection.
"""

import logging

from pop2exchange.config import Settings
from pop2exchange.database.connection import DatabaseManager
from pop2exchange.database.sqlite_connection import SQLiteManager

logger = logging.getLogger(__name__)


def create_storage(settings: Settings):
    """Return the storage handle configured by ``DATABASE_BACKEND``."""
    if settings.database_backend == 'postgres':
        logger.info("Using PostgreSQL storage backend")
        return DatabaseManager(settings.database_url)

    logger.info(f"Using SQLite storage backend at {settings.sqlite_db_path}")
    return SQLiteManager(settings.sqlite_db_path)
