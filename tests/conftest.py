# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")

from src.config.loader import Settings
from src.shared.models.location import Entry, LocationUpdate


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config(tmp_path: Path) -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_test": "тестовая конфигурация",
        "PROJECT_NAME": "location_tracker_test",
        "VERSION": "1.0.0-test",
        "DEBUG": False,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "HOST": "127.0.0.1",
        "PORT": 18080,
        "WEB_DIST_DIR": str(tmp_path / "no_web"),
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "colored",
        "STORE_BACKEND": "file",
        "STORE_FILE_PATH": str(tmp_path / "locations.jsonl"),
        "STORE_FSYNC": True,
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "location_tracker_test",
        "DB_USER": "postgres",
        "INGEST_PARSE_POLICY": "lenient",
        "RETRIEVE_DEFAULT_COUNT": 1,
        "RETRIEVE_MAX_COUNT": 65535,
    }


@pytest.fixture
def test_settings(mock_config: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Настройки, собранные из мок-конфигурации без влияния окружения."""
    for key in ("DEBUG", "TRACKER_HOST", "TRACKER_PORT", "STORE_BACKEND", "STORE_FILE_PATH", "INGEST_PARSE_POLICY"):
        monkeypatch.delenv(key, raising=False)
    return Settings.from_dict(mock_config)


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_conn() -> AsyncMock:
    """Мок соединения asyncpg."""
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    return conn


@pytest.fixture
def mock_db(mock_conn: AsyncMock) -> AsyncMock:
    """Мок менеджера базы данных; transaction() отдаёт mock_conn."""
    db = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=0)
    db.is_connected = True
    db.transaction = MagicMock()
    db.transaction.return_value.__aenter__.return_value = mock_conn
    db.transaction.return_value.__aexit__.return_value = False
    return db


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Путь к файлу хранилища."""
    return tmp_path / "data" / "locations.jsonl"


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def make_entry() -> Callable[..., Entry]:
    """Фабрика записей с заданным timestamp."""
    def _make(timestamp: int, **fields: float) -> Entry:
        data = {
            "latitude": 52.52 + timestamp / 1e6,
            "longitude": 13.405,
            "hdop": 1.2,
            "altitude": 34.0,
            "speed": 0.0,
        }
        data.update(fields)
        return Entry.from_update(LocationUpdate(timestamp=timestamp, **data))
    return _make


@pytest.fixture
def submit_params() -> dict[str, str]:
    """Пример query-параметров от трекера (OsmAnd)."""
    return {
        "lat": "52.520008",
        "lon": "13.404954",
        "timestamp": "1700000000000",
        "hdop": "3.5",
        "altitude": "41.2",
        "speed": "1.75",
    }
