# src/core/tracking/store.py
"""
Хранилище записей о местоположении.

Append-only, упорядоченное по timestamp. Два бэкенда:
- FileEntryStore: один JSON-lines файл, fsync после каждой записи
- PostgresEntryStore: таблица tracker_schema.location_entries (asyncpg)

Записи с одинаковым timestamp сохраняются обе; их взаимный порядок
при чтении не гарантируется.
"""

from __future__ import annotations

import asyncio
import bisect
import io
import os
import threading
from abc import ABC, abstractmethod
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

import asyncpg

from src.common.constants import StoreBackend
from src.common.logger import log_info, log_warning
from src.core.tracking.codec import decode_entry, encode_entry
from src.core.tracking.exceptions import PersistenceError
from src.infra.database import DatabaseManager
from src.shared.models.location import Entry, LocationUpdate

if TYPE_CHECKING:
    from asyncpg import Record
    from src.config.loader import Settings


class EntryStore(ABC):
    """Интерфейс хранилища записей."""

    @abstractmethod
    async def open(self) -> None:
        """Подготавливает хранилище. Raises PersistenceError."""

    @abstractmethod
    async def close(self) -> None:
        """Освобождает ресурсы."""

    @abstractmethod
    async def append(self, entry: Entry) -> None:
        """
        Сохраняет одну запись.

        После успешного возврата запись переживает перезапуск процесса.

        Raises:
            PersistenceError: ошибка ввода-вывода; запись считается потерянной
        """

    @abstractmethod
    async def read_recent(self, limit: int) -> list[Entry]:
        """
        Возвращает до limit последних записей, новые первыми.

        limit == 0 означает «лимит не задан» и возвращает все записи.
        Для пустого хранилища возвращается пустой список.

        Raises:
            PersistenceError: ошибка чтения
        """

    @abstractmethod
    async def count(self) -> int:
        """Количество сохранённых записей."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Готово ли хранилище принимать записи."""


# =============================================================================
# ФАЙЛОВЫЙ БЭКЕНД
# =============================================================================

class FileEntryStore(EntryStore):
    """
    Хранилище в одном файле формата JSON lines.

    Каждая запись — одна строка; append пишет её в небуферизованный
    файл и делает fsync до возврата. Недописанная последняя строка (сбой во время
    записи, клиенту не подтверждена) обрезается при открытии.

    Файл читается целиком при open() в индекс, отсортированный по
    timestamp; дальше индекс пополняется только после успешной записи
    на диск. Блокирующий ввод-вывод выполняется в потоке под общим lock.
    """

    def __init__(self, path: Path | str, fsync: bool = True) -> None:
        self._path = Path(path)
        self._fsync = fsync
        self._lock = threading.Lock()
        self._entries: list[Entry] = []
        self._file: io.FileIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    async def open(self) -> None:
        try:
            truncated = await asyncio.to_thread(self._open_sync)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Не удалось открыть хранилище {self._path}: {e}") from e

        if truncated:
            await log_warning(
                f"Хранилище {self._path}: обрезана недописанная запись ({truncated} байт)"
            )
        await log_info(f"Хранилище открыто: {self._path}, записей: {len(self._entries)}")

    def _open_sync(self) -> int:
        with self._lock:
            if self._file is not None:
                return 0

            self._path.parent.mkdir(parents=True, exist_ok=True)
            data = self._path.read_bytes() if self._path.exists() else b""

            truncated = 0
            if data and not data.endswith(b"\n"):
                keep = data.rfind(b"\n") + 1
                truncated = len(data) - keep
                data = data[:keep]
                with open(self._path, "r+b") as f:
                    f.truncate(keep)
                    f.flush()
                    os.fsync(f.fileno())

            entries = [decode_entry(line) for line in data.splitlines() if line.strip()]
            # Стабильная сортировка: при равных timestamp сохраняется порядок записи
            entries.sort(key=lambda e: e.timestamp)
            self._entries = entries

            # Без буфера: после ошибки записи в памяти не остаётся хвоста строки
            self._file = open(self._path, "ab", buffering=0)
            return truncated

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)

    def _close_sync(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    async def append(self, entry: Entry) -> None:
        line = (encode_entry(entry) + "\n").encode("utf-8")
        await asyncio.to_thread(self._append_sync, entry, line)

    def _append_sync(self, entry: Entry, line: bytes) -> None:
        with self._lock:
            if self._file is None:
                raise PersistenceError("Хранилище не открыто")

            fd = self._file.fileno()
            position = os.fstat(fd).st_size
            try:
                view = memoryview(line)
                while view:
                    written = os.write(fd, view)
                    view = view[written:]
                if self._fsync:
                    os.fsync(fd)
            except OSError as e:
                # Откатываем частично записанную строку
                try:
                    os.ftruncate(fd, position)
                except OSError:
                    # Хвост строки остался в файле: запись запрещена до
                    # повторного open(), который его обрежет
                    self._file.close()
                    self._file = None
                raise PersistenceError(f"Не удалось записать в {self._path}: {e}") from e

            bisect.insort(self._entries, entry, key=lambda e: e.timestamp)

    async def read_recent(self, limit: int) -> list[Entry]:
        return await asyncio.to_thread(self._read_recent_sync, limit)

    def _read_recent_sync(self, limit: int) -> list[Entry]:
        with self._lock:
            if self._file is None:
                raise PersistenceError("Хранилище не открыто")
            selected = self._entries if limit == 0 else self._entries[-limit:]
            return selected[::-1]

    async def count(self) -> int:
        return len(self._entries)

    async def health_check(self) -> bool:
        return self._file is not None


# =============================================================================
# POSTGRESQL БЭКЕНД
# =============================================================================

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgresEntryStore(EntryStore):
    """Хранилище в таблице PostgreSQL. Каждая вставка коммитится отдельно."""

    TABLE = "tracker_schema.location_entries"

    def __init__(self, db: DatabaseManager, schema_path: Path | None = None) -> None:
        self.db = db
        self._schema_path = schema_path

    async def open(self) -> None:
        try:
            await self.db.connect()
            if self._schema_path is not None:
                await self.db.apply_schema(self._schema_path)
        except _DB_ERRORS as e:
            raise PersistenceError(f"Не удалось открыть хранилище PostgreSQL: {e}") from e

    async def close(self) -> None:
        await self.db.disconnect()

    async def append(self, entry: Entry) -> None:
        query = f"""
            INSERT INTO {self.TABLE}
            (timestamp, latitude, longitude, hdop, altitude, speed)
            VALUES ($1, $2, $3, $4, $5, $6)
        """
        data = entry.data
        # Без retry: INSERT не идемпотентен
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    query,
                    Decimal(entry.timestamp),
                    data.latitude,
                    data.longitude,
                    data.hdop,
                    data.altitude,
                    data.speed,
                )
        except _DB_ERRORS as e:
            raise PersistenceError(f"Не удалось сохранить запись {entry.timestamp}: {e}") from e

    async def read_recent(self, limit: int) -> list[Entry]:
        query = f"""
            SELECT timestamp, latitude, longitude, hdop, altitude, speed
            FROM {self.TABLE}
            ORDER BY timestamp DESC, id DESC
        """
        args: tuple[int, ...] = ()
        if limit > 0:
            query += " LIMIT $1"
            args = (limit,)
        try:
            rows = await self.db.fetch(query, *args)
        except _DB_ERRORS as e:
            raise PersistenceError(f"Не удалось прочитать записи: {e}") from e
        return [self._row_to_entry(row) for row in rows]

    async def count(self) -> int:
        try:
            value = await self.db.fetchval(f"SELECT COUNT(*) FROM {self.TABLE}")
        except _DB_ERRORS as e:
            raise PersistenceError(f"Не удалось посчитать записи: {e}") from e
        return int(value or 0)

    async def health_check(self) -> bool:
        return self.db.is_connected and await self.db.health_check()

    @staticmethod
    def _row_to_entry(row: "Record") -> Entry:
        timestamp = int(row["timestamp"])
        return Entry(
            timestamp=timestamp,
            data=LocationUpdate(
                latitude=row["latitude"],
                longitude=row["longitude"],
                timestamp=timestamp,
                hdop=row["hdop"],
                altitude=row["altitude"],
                speed=row["speed"],
            ),
        )


# =============================================================================
# ФАБРИКА
# =============================================================================

def create_entry_store(settings: "Settings") -> EntryStore:
    """Создаёт хранилище согласно настройкам."""
    from src.config.loader import get_project_root

    if settings.store.STORE_BACKEND is StoreBackend.POSTGRES:
        db = DatabaseManager(
            dsn=settings.database.dsn,
            min_size=settings.database.DB_MIN_POOL_SIZE,
            max_size=settings.database.DB_MAX_POOL_SIZE,
            command_timeout=settings.database.DB_COMMAND_TIMEOUT,
            retry_attempts=settings.database.DB_RETRY_ATTEMPTS,
            retry_delay=settings.database.DB_RETRY_DELAY,
        )
        return PostgresEntryStore(db, schema_path=get_project_root() / "migrations" / "init.sql")

    path = Path(settings.store.STORE_FILE_PATH)
    if not path.is_absolute():
        path = get_project_root() / path
    return FileEntryStore(path, fsync=settings.store.STORE_FSYNC)
