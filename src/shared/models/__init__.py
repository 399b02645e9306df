# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели.
"""

from src.shared.models.location import Entry, LocationUpdate
from src.shared.models.common import ErrorResponse, HealthStatus

__all__ = [
    # Location
    "Entry",
    "LocationUpdate",
    # Common
    "ErrorResponse",
    "HealthStatus",
]
