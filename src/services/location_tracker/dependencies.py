# src/services/location_tracker/dependencies.py
"""
Dependency Injection для Location Tracker.

Компоненты принадлежат экземпляру приложения (app.state.tracker),
а не модулю: их жизненный цикл ограничен lifespan сервера.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fastapi import Request

from src.core.tracking.cache import LatestEntryCache
from src.core.tracking.service import IngestionService, RetrievalService
from src.core.tracking.store import EntryStore

if TYPE_CHECKING:
    from src.config.loader import Settings


@dataclass
class TrackerContainer:
    """Компоненты трекера одного процесса."""
    store: EntryStore
    cache: LatestEntryCache
    ingestion: IngestionService
    retrieval: RetrievalService
    started_at: float = field(default_factory=time.monotonic)


async def init_container(store: EntryStore, settings: "Settings") -> TrackerContainer:
    """
    Собирает компоненты поверх открытого хранилища.

    Кэш заполняется здесь, до того как приложение начнёт принимать
    запросы. Ошибка хранилища пробрасывается.
    """
    cache = LatestEntryCache()
    await cache.seed(store)

    return TrackerContainer(
        store=store,
        cache=cache,
        ingestion=IngestionService(
            store=store,
            cache=cache,
            policy=settings.ingest.INGEST_PARSE_POLICY,
        ),
        retrieval=RetrievalService(
            store=store,
            cache=cache,
            default_count=settings.retrieval.RETRIEVE_DEFAULT_COUNT,
            max_count=settings.retrieval.RETRIEVE_MAX_COUNT,
        ),
    )


def get_container(request: Request) -> TrackerContainer:
    """Получить компоненты трекера."""
    container: TrackerContainer | None = getattr(request.app.state, "tracker", None)
    if container is None:
        raise RuntimeError("Трекер не инициализирован")
    return container


def get_ingestion_service(request: Request) -> IngestionService:
    """Получить сервис приёма."""
    return get_container(request).ingestion


def get_retrieval_service(request: Request) -> RetrievalService:
    """Получить сервис выдачи."""
    return get_container(request).retrieval
