# src/core/tracking/cache.py
"""
Кэш последней принятой записи.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from src.common.logger import log_debug
from src.shared.models.location import Entry

if TYPE_CHECKING:
    from src.core.tracking.store import EntryStore


class LatestEntryCache:
    """
    Однослотовый кэш последней принятой записи.

    «Последняя» — по порядку приёма, а не по значению timestamp:
    запоздавшее обновление со старым timestamp тоже становится последним.
    Значение производно от хранилища: заполняется из него при старте и
    дальше только заменяется, никогда не инвалидируется.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: Entry = Entry()
        self._seeded = False

    @property
    def is_seeded(self) -> bool:
        return self._seeded

    async def seed(self, store: "EntryStore") -> Entry:
        """
        Заполняет кэш самой свежей записью хранилища.

        При пустом хранилище устанавливает нулевую запись.
        Ошибки хранилища пробрасываются (фатальны при старте).
        """
        recent = await store.read_recent(1)
        entry = recent[0] if recent else Entry()
        with self._lock:
            self._entry = entry
            self._seeded = True
        await log_debug(f"Кэш заполнен из хранилища: timestamp={entry.timestamp}")
        return entry

    def set(self, entry: Entry) -> None:
        """Безусловно заменяет значение."""
        with self._lock:
            self._entry = entry

    def get(self) -> Entry:
        """Текущее значение. Entry неизменяем, чтение ссылки атомарно."""
        return self._entry
