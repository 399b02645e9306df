# src/services/location_tracker/__init__.py
"""
Location Tracker — HTTP-сервис приёма и выдачи координат трекера.

Обеспечивает:
- Приём координат (GET /submit, формат OsmAnd)
- Надёжное сохранение в хранилище записей
- Выдачу последней позиции из памяти и истории из хранилища (GET /retrieve)
"""
