# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class StoreBackend(str, Enum):
    """Бэкенды хранилища записей."""
    FILE = "file"
    POSTGRES = "postgres"


class ParsePolicy(str, Enum):
    """Политика разбора входящих числовых полей."""
    LENIENT = "lenient"  # некорректное значение заменяется нулём
    STRICT = "strict"    # некорректное значение отклоняет запрос


class ParseOutcome(str, Enum):
    """Результат разбора одного поля."""
    OK = "ok"
    DEFAULTED = "defaulted"
    REJECTED = "rejected"


# Максимальное значение uint64 (timestamp)
UINT64_MAX = 2**64 - 1
