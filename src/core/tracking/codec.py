# src/core/tracking/codec.py
"""
Кодирование записей в JSON (ответы API и файловое хранилище).
"""

from __future__ import annotations

import json
from typing import Iterable

from src.core.tracking.exceptions import SerializationError
from src.shared.models.location import Entry


def encode_entry(entry: Entry) -> str:
    """
    Кодирует одну запись в компактную JSON-строку.

    Raises:
        SerializationError: значение непредставимо в JSON (NaN, Inf)
    """
    try:
        return json.dumps(entry.to_wire(), allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Не удалось закодировать запись {entry.timestamp}: {e}") from e


def render_entries(entries: Iterable[Entry]) -> str:
    """
    Кодирует список записей в JSON-массив для ответа /retrieve.

    Raises:
        SerializationError: значение непредставимо в JSON
    """
    try:
        return json.dumps([entry.to_wire() for entry in entries], allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Не удалось закодировать ответ: {e}") from e


def decode_entry(line: str | bytes) -> Entry:
    """
    Декодирует запись из строки файлового хранилища.

    Raises:
        ValueError: строка не является корректной записью
    """
    return Entry.model_validate(json.loads(line))
