# src/core/tracking/service.py
"""
Бизнес-логика приёма и выдачи координат.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from src.common.constants import ParseOutcome, ParsePolicy
from src.common.logger import log_debug, log_error, log_warning
from src.core.tracking.cache import LatestEntryCache
from src.core.tracking.codec import encode_entry, render_entries
from src.core.tracking.exceptions import InvalidLocationField, PersistenceError
from src.core.tracking.parsing import parse_count, parse_location_update
from src.core.tracking.store import EntryStore
from src.shared.models.location import Entry


class IngestionService:
    """
    Приём обновлений геолокации.

    Порядок обработки:
    1. Разбор полей (нестрогий или строгий, по настройке)
    2. Проверка сериализуемости записи
    3. Запись в хранилище
    4. Замена значения в кэше

    Шаги 3-4 выполняются под общим lock и защищены от отмены запроса:
    кэш обновляется только после успешной записи и в том же порядке,
    в котором записи попали в хранилище.
    """

    def __init__(
        self,
        store: EntryStore,
        cache: LatestEntryCache,
        policy: ParsePolicy = ParsePolicy.LENIENT,
    ) -> None:
        self._store = store
        self._cache = cache
        self._policy = policy
        self._commit_lock = asyncio.Lock()

        # Статистика
        self._accepted = 0
        self._rejected = 0
        self._failed = 0
        self._defaulted_fields: dict[str, int] = {}

    @property
    def policy(self) -> ParsePolicy:
        return self._policy

    async def ingest(self, params: Mapping[str, str | None]) -> Entry:
        """
        Принять обновление из query-параметров трекера.

        Returns:
            Сохранённая запись

        Raises:
            InvalidLocationField: строгий режим, некорректные поля
            SerializationError: запись непредставима в JSON
            PersistenceError: хранилище не приняло запись; кэш не изменён
        """
        try:
            update, parsed = parse_location_update(params, self._policy)
        except InvalidLocationField as e:
            self._rejected += 1
            await log_warning(f"Обновление отклонено: {e.fields}")
            raise

        for field in parsed:
            if field.outcome is not ParseOutcome.DEFAULTED:
                continue
            self._defaulted_fields[field.name] = self._defaulted_fields.get(field.name, 0) + 1
            if field.raw:
                await log_warning(f"Поле '{field.name}' не разобрано ({field.raw!r}), подставлен 0")
            else:
                await log_debug(f"Поле '{field.name}' отсутствует, подставлен 0")

        entry = Entry.from_update(update)
        # Запись, непредставимая в JSON, не должна попасть в хранилище
        encode_entry(entry)

        try:
            await asyncio.shield(self._commit(entry))
        except PersistenceError as e:
            self._failed += 1
            await log_error(f"Запись не сохранена: {e}")
            raise

        self._accepted += 1
        return entry

    async def _commit(self, entry: Entry) -> None:
        async with self._commit_lock:
            await self._store.append(entry)
            self._cache.set(entry)

    def get_stats(self) -> dict[str, Any]:
        """Статистика приёма."""
        return {
            "accepted": self._accepted,
            "rejected": self._rejected,
            "failed": self._failed,
            "defaulted_fields": dict(self._defaulted_fields),
        }


class RetrievalService:
    """
    Выдача последних координат.

    count <= 1 отдаётся из кэша без обращения к хранилищу,
    count > 1 читается из хранилища.
    """

    def __init__(
        self,
        store: EntryStore,
        cache: LatestEntryCache,
        default_count: int = 1,
        max_count: int = 65535,
    ) -> None:
        self._store = store
        self._cache = cache
        self._default_count = default_count
        self._max_count = max_count

        self._cache_reads = 0
        self._store_reads = 0

    async def parse_count(self, raw: str | None) -> int:
        """Нестрого разбирает параметр count."""
        parsed = parse_count(raw, default=self._default_count, maximum=self._max_count)
        if parsed.outcome is ParseOutcome.DEFAULTED and parsed.raw:
            await log_debug(f"Параметр 'count' не разобран ({parsed.raw!r}), используется {parsed.value}")
        return parsed.value

    async def retrieve(self, count: int) -> list[Entry]:
        """
        Последние записи, новые первыми.

        Raises:
            PersistenceError: ошибка чтения хранилища (только count > 1)
        """
        if count <= 1:
            await log_debug("Последняя запись берётся из памяти")
            self._cache_reads += 1
            return [self._cache.get()]

        await log_debug(f"Последние {count} записей читаются из хранилища")
        self._store_reads += 1
        return await self._store.read_recent(count)

    @staticmethod
    def render(entries: list[Entry]) -> str:
        """JSON-массив записей для ответа."""
        return render_entries(entries)

    def get_stats(self) -> dict[str, Any]:
        """Статистика выдачи."""
        return {
            "cache_reads": self._cache_reads,
            "store_reads": self._store_reads,
        }
