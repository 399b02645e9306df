# src/shared/models/location.py
"""
Модели геолокации: входящее обновление и сохранённая запись.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import UINT64_MAX


class LocationUpdate(BaseModel):
    """Обновление геолокации от трекера (до сохранения)."""

    model_config = ConfigDict(frozen=True)

    latitude: float = 0.0   # градусы
    longitude: float = 0.0  # градусы
    timestamp: int = Field(default=0, ge=0, le=UINT64_MAX)
    hdop: float = 0.0       # horizontal dilution of precision
    altitude: float = 0.0   # метры
    speed: float = 0.0


class Entry(BaseModel):
    """
    Сохранённая запись о местоположении.

    timestamp — ключ упорядочивания, копия timestamp из data.
    Записи неизменяемы: хранилище только добавляет новые.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(default=0, ge=0, le=UINT64_MAX)
    data: LocationUpdate = Field(default_factory=LocationUpdate)

    @classmethod
    def from_update(cls, update: LocationUpdate) -> "Entry":
        """Создаёт запись из обновления, используя его timestamp как ключ."""
        return cls(timestamp=update.timestamp, data=update)

    def to_wire(self) -> dict:
        """Словарь для JSON-ответа и файлового хранилища."""
        return {
            "timestamp": self.timestamp,
            "data": {
                "latitude": self.data.latitude,
                "longitude": self.data.longitude,
                "timestamp": self.data.timestamp,
                "hdop": self.data.hdop,
                "altitude": self.data.altitude,
                "speed": self.data.speed,
            },
        }
