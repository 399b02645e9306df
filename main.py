#!/usr/bin/env python3
# main.py
"""
Главная точка входа Location Tracker.
Запускает HTTP-сервер приёма и выдачи координат.
"""

from __future__ import annotations

import asyncio
import sys

import uvicorn

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg


async def run_server(host: str, port: int) -> None:
    """Запускает uvicorn в текущем event loop."""
    from src.services.location_tracker.app import create_app

    config = uvicorn.Config(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.system.LOG_LEVEL.lower(),
        access_log=settings.system.DEBUG,
        server_header=False,
    )
    server = uvicorn.Server(config)

    await log_info(f"Запуск Location Tracker на {host}:{port}...", type_msg=TypeMsg.INFO)
    await server.serve()

    # serve() возвращает управление и при неудачном lifespan
    if not server.started:
        await log_error("Location Tracker не запустился")
        raise SystemExit(1)


async def main(port: int | None = None) -> None:
    """Главная функция запуска."""
    setup_logging()

    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION} "
        f"(environment={settings.system.ENVIRONMENT}, debug={settings.system.DEBUG})",
        type_msg=TypeMsg.INFO,
    )

    await run_server(settings.server.HOST, port or settings.server.PORT)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Location Tracker — приём и выдача координат GPS-трекера

Использование:
    python main.py [port]

Параметры:
    port                   — порт HTTP-сервера (по умолчанию PORT из config/config.json)

Переменные окружения:
    TRACKER_HOST, TRACKER_PORT   — адрес сервера
    STORE_BACKEND                — file | postgres
    STORE_FILE_PATH              — путь к файлу хранилища
    INGEST_PARSE_POLICY          — lenient | strict
    DEBUG                        — журнал доступа и /docs

Примеры:
    python main.py
    python main.py 9000
    """)


def cli() -> None:
    """Разбор аргументов командной строки и запуск."""
    port = None

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        if not arg.isdigit() or not 0 < int(arg) < 65536:
            print(f"Ошибка: некорректный порт '{arg}'")
            print_usage()
            sys.exit(1)
        port = int(arg)

    try:
        asyncio.run(main(port))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
