#!/usr/bin/env python3
"""
Entrypoint для Location Tracker.

Запуск:
    python entrypoints/entrypoint_location_tracker.py

Порт по умолчанию: 8080 (PORT в config.json или TRACKER_PORT)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import settings


def main() -> None:
    """Запустить Location Tracker."""
    uvicorn.run(
        "src.services.location_tracker.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        log_level=settings.system.LOG_LEVEL.lower(),
        server_header=False,
    )


if __name__ == "__main__":
    main()
