# src/services/location_tracker/app.py
"""
FastAPI приложение для Location Tracker.

Endpoints:
- GET /submit - принять координаты от трекера (lat, lon, timestamp, hdop, altitude, speed)
- GET /retrieve - последние записи (?count=N)
- GET /health - проверка здоровья
- GET /stats - статистика приёма и выдачи
- GET / - веб-интерфейс (если собран) или 501
"""

from __future__ import annotations

import platform
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from src.common.constants import TypeMsg
from src.common.logger import log_debug, log_info, setup_logging
from src.config.loader import Settings, get_project_root
from src.core.tracking.exceptions import (
    InvalidLocationField,
    PersistenceError,
    SerializationError,
    TrackingError,
)
from src.core.tracking.service import IngestionService, RetrievalService
from src.core.tracking.store import EntryStore, create_entry_store
from src.services.location_tracker.dependencies import (
    TrackerContainer,
    get_container,
    get_ingestion_service,
    get_retrieval_service,
    init_container,
)
from src.shared.models.common import ErrorResponse, HealthStatus


SERVER_IDENTIFIER = f"Python {platform.python_version()} on {sys.platform} {platform.machine()}"

# Код ответа для каждого типа ошибки трекинга
_ERROR_STATUS: dict[type[TrackingError], int] = {
    InvalidLocationField: 400,
    PersistenceError: 500,
    SerializationError: 500,
}


# === MODELS ===

class StatsResponse(BaseModel):
    """Статистика сервиса."""
    ingestion: dict[str, Any]
    retrieval: dict[str, Any]
    stored_entries: int


# === APP FACTORY ===

def create_app(settings: Settings | None = None, store: EntryStore | None = None) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        settings: настройки (по умолчанию из config.json)
        store: готовое хранилище (по умолчанию по настройкам)
    """
    if settings is None:
        from src.config import settings as default_settings
        settings = default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл: открыть хранилище, заполнить кэш, затем принимать запросы."""
        setup_logging()

        entry_store = store if store is not None else create_entry_store(settings)
        try:
            await entry_store.open()
            app.state.tracker = await init_container(entry_store, settings)
        except PersistenceError as e:
            await log_info(f"Хранилище недоступно, запуск невозможен: {e}", type_msg=TypeMsg.CRITICAL)
            raise

        await log_info(
            f"Location Tracker запущен: хранилище={settings.store.STORE_BACKEND.value}, "
            f"разбор={settings.ingest.INGEST_PARSE_POLICY.value}",
        )

        try:
            yield
        finally:
            app.state.tracker = None
            await entry_store.close()
            await log_info("Location Tracker остановлен")

    app = FastAPI(
        title="Location Tracker",
        description="Приём и выдача координат GPS-трекера.",
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.system.DEBUG else None,
        redoc_url=None,
    )
    app.state.tracker = None

    _register_middleware(app, settings)
    _register_error_handlers(app)
    _register_routes(app, settings)
    _register_frontend(app, settings)

    return app


# === MIDDLEWARE ===

def _register_middleware(app: FastAPI, settings: Settings) -> None:
    debug = settings.system.DEBUG

    @app.middleware("http")
    async def server_header(request: Request, call_next):
        """Заголовок Server и журнал доступа (только в DEBUG)."""
        response = await call_next(request)
        response.headers["Server"] = SERVER_IDENTIFIER
        if debug:
            await log_debug(f"{request.method} {request.url.path} -> {response.status_code}")
        return response


# === ERROR HANDLERS ===

def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(TrackingError)
    async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
        """Ошибки трекинга завершают только текущий запрос."""
        status_code = _ERROR_STATUS.get(type(exc), 500)
        details = {"fields": exc.fields} if isinstance(exc, InvalidLocationField) else None
        body = ErrorResponse(error_code=exc.error_code, message=str(exc), details=details)
        return JSONResponse(status_code=status_code, content=body.model_dump())


# === ROUTES ===

def _register_routes(app: FastAPI, settings: Settings) -> None:

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check(container: Annotated[TrackerContainer, Depends(get_container)]) -> HealthStatus:
        """
        Проверка здоровья сервиса.

        unhealthy: кэш не заполнен; degraded: хранилище не принимает записи.
        """
        if not container.cache.is_seeded:
            status = "unhealthy"
        elif not await container.store.health_check():
            status = "degraded"
        else:
            status = "healthy"
        return HealthStatus(
            service=settings.system.PROJECT_NAME,
            status=status,
            version=settings.system.VERSION,
            uptime_seconds=round(time.monotonic() - container.started_at, 3),
        )

    @app.get("/stats", response_model=StatsResponse, tags=["Stats"])
    async def get_stats(container: Annotated[TrackerContainer, Depends(get_container)]) -> StatsResponse:
        """Статистика приёма и выдачи."""
        return StatsResponse(
            ingestion=container.ingestion.get_stats(),
            retrieval=container.retrieval.get_stats(),
            stored_entries=await container.store.count(),
        )

    @app.get("/submit", status_code=204, tags=["Location"], summary="Принять координаты")
    async def submit(
        request: Request,
        ingestion: Annotated[IngestionService, Depends(get_ingestion_service)],
    ) -> Response:
        """
        Принять обновление геолокации.

        Все шесть параметров необязательны; в нестрогом режиме
        некорректное значение заменяется нулём.
        """
        await ingestion.ingest(request.query_params)
        return Response(status_code=204)

    @app.get("/retrieve", tags=["Location"], summary="Последние координаты")
    async def retrieve(
        retrieval: Annotated[RetrievalService, Depends(get_retrieval_service)],
        count: Annotated[str | None, Query()] = None,
    ) -> Response:
        """
        Последние записи, новые первыми.

        count <= 1: одна запись из памяти, иначе до count записей из хранилища.
        """
        cnt = await retrieval.parse_count(count)
        entries = await retrieval.retrieve(cnt)
        return Response(
            content=retrieval.render(entries),
            media_type="application/json",
            headers={"Access-Control-Allow-Origin": "*"},
        )


def _register_frontend(app: FastAPI, settings: Settings) -> None:
    """Статический веб-интерфейс или заглушка 501."""
    web_dir = Path(settings.server.WEB_DIST_DIR)
    if not web_dir.is_absolute():
        web_dir = get_project_root() / web_dir

    if web_dir.is_dir():
        # Монтируется последним, чтобы не перекрывать API
        app.mount("/", StaticFiles(directory=str(web_dir), html=True), name="web")
        return

    @app.get("/", include_in_schema=False)
    async def not_implemented(request: Request) -> PlainTextResponse:
        return PlainTextResponse(f"Sorry, {request.url.path} is not implemented.", status_code=501)


# === APP ===

app = create_app()


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    from src.config import settings as _settings

    uvicorn.run(app, host=_settings.server.HOST, port=_settings.server.PORT, server_header=False)
