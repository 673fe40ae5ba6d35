#!/usr/bin/env python3

"""
Initialize the log database for the configured storage backend.
"""

from pop2exchange.config import Settings
from pop2exchange.database.storage import create_storage
from pop2exchange.ingestion.database_operations import DatabaseOperations

settings = Settings.from_env()
storage = create_storage(settings)

try:
    DatabaseOperations(storage).ensure_schema()
finally:
    storage.close()

print(f'Database initialized successfully ({settings.database_backend})')
