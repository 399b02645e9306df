# src/services/__init__.py
"""
Сервисы приложения.

- location_tracker: HTTP API приёма и выдачи координат (FastAPI)
"""

__all__: list[str] = []
