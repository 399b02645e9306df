# src/core/tracking/exceptions.py
"""
Исключения подсистемы трекинга.
"""

from __future__ import annotations


class TrackingError(Exception):
    """Базовое исключение трекинга."""

    error_code = "tracking_error"


class PersistenceError(TrackingError):
    """Ошибка чтения или записи хранилища записей."""

    error_code = "persistence_error"


class SerializationError(TrackingError):
    """Запись не может быть закодирована в формат ответа."""

    error_code = "serialization_error"


class InvalidLocationField(TrackingError):
    """Некорректное поле обновления (только в строгом режиме разбора)."""

    error_code = "invalid_location_field"

    def __init__(self, fields: dict[str, str | None]) -> None:
        self.fields = fields
        names = ", ".join(sorted(fields))
        super().__init__(f"Некорректные поля: {names}")
