# tests/core/test_latest_entry_cache.py
"""
Тесты кэша последней записи.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from src.core.tracking.cache import LatestEntryCache
from src.core.tracking.exceptions import PersistenceError
from src.core.tracking.store import FileEntryStore
from src.shared.models.location import Entry


class TestLatestEntryCache:
    """Тесты для LatestEntryCache."""

    def test_initial_value_is_zero_entry(self) -> None:
        cache = LatestEntryCache()

        assert cache.get() == Entry()
        assert cache.get().data.latitude == 0.0
        assert cache.is_seeded is False

    def test_set_replaces_unconditionally(self, make_entry: Callable[..., Entry]) -> None:
        """Запоздавшая запись со старым timestamp тоже становится последней."""
        cache = LatestEntryCache()
        newer = make_entry(200)
        older = make_entry(100)

        cache.set(newer)
        cache.set(older)

        assert cache.get() is older

    @pytest.mark.asyncio
    async def test_seed_from_empty_store(self, store_path: Path) -> None:
        """Пустое хранилище — нулевая запись."""
        store = FileEntryStore(store_path)
        await store.open()
        cache = LatestEntryCache()

        seeded = await cache.seed(store)

        assert seeded == Entry()
        assert cache.get() == Entry()
        assert cache.is_seeded is True
        await store.close()

    @pytest.mark.asyncio
    async def test_seed_takes_newest_entry(self, store_path: Path, make_entry: Callable[..., Entry]) -> None:
        store = FileEntryStore(store_path)
        await store.open()
        for ts in (5, 50, 20):
            await store.append(make_entry(ts))
        cache = LatestEntryCache()

        await cache.seed(store)

        assert cache.get().timestamp == 50
        await store.close()

    @pytest.mark.asyncio
    async def test_seed_propagates_store_error(self) -> None:
        store = AsyncMock()
        store.read_recent.side_effect = PersistenceError("read failed")
        cache = LatestEntryCache()

        with pytest.raises(PersistenceError):
            await cache.seed(store)

        assert cache.is_seeded is False

    def test_concurrent_set_never_tears(self, make_entry: Callable[..., Entry]) -> None:
        """Читатель видит только целиком записанные значения."""
        cache = LatestEntryCache()
        candidates = {make_entry(ts, speed=float(ts)) for ts in range(1, 6)}
        seen: list[Entry] = []

        def writer() -> None:
            for _ in range(200):
                for entry in candidates:
                    cache.set(entry)

        def reader() -> None:
            for _ in range(1000):
                seen.append(cache.get())

        threads = [threading.Thread(target=writer) for _ in range(3)] + [threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        allowed = candidates | {Entry()}
        assert all(entry in allowed for entry in seen)
        assert all(entry.timestamp == entry.data.timestamp for entry in seen)
