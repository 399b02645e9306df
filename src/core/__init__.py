# src/core/__init__.py
"""
Доменный слой (Core Domain).
"""

from src.core.tracking import IngestionService, LatestEntryCache, RetrievalService

__all__ = [
    "IngestionService",
    "LatestEntryCache",
    "RetrievalService",
]
