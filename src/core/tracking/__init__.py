# src/core/tracking/__init__.py
"""
Трекинг: хранилище записей, кэш последней записи, приём и выдача координат.
"""

from src.core.tracking.cache import LatestEntryCache
from src.core.tracking.exceptions import (
    InvalidLocationField,
    PersistenceError,
    SerializationError,
    TrackingError,
)
from src.core.tracking.service import IngestionService, RetrievalService
from src.core.tracking.store import (
    EntryStore,
    FileEntryStore,
    PostgresEntryStore,
    create_entry_store,
)

__all__ = [
    "LatestEntryCache",
    "InvalidLocationField",
    "PersistenceError",
    "SerializationError",
    "TrackingError",
    "IngestionService",
    "RetrievalService",
    "EntryStore",
    "FileEntryStore",
    "PostgresEntryStore",
    "create_entry_store",
]
