# src/core/tracking/parsing.py
"""
Разбор нестрогих числовых полей, приходящих от трекера.

Каждое поле разбирается независимо. Результат разбора явный
(ParseOutcome), чтобы подстановка нулей была видна в логах и статистике.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Mapping, TypeVar

from src.common.constants import UINT64_MAX, ParseOutcome, ParsePolicy
from src.core.tracking.exceptions import InvalidLocationField
from src.shared.models.location import LocationUpdate

T = TypeVar("T", int, float)

# Соответствие query-параметров полям LocationUpdate
FIELD_MAP: dict[str, str] = {
    "lat": "latitude",
    "lon": "longitude",
    "timestamp": "timestamp",
    "hdop": "hdop",
    "altitude": "altitude",
    "speed": "speed",
}


@dataclass(frozen=True)
class ParsedField(Generic[T]):
    """Результат разбора одного поля."""
    name: str
    value: T
    outcome: ParseOutcome
    raw: str | None = None


def _parse_float_strict(raw: str) -> float:
    # float() принимает пробелы по краям, "_" и не-ASCII цифры
    if not raw.isascii() or raw != raw.strip() or "_" in raw:
        raise ValueError(raw)
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(raw)
    return value


def _parse_uint64_strict(raw: str) -> int:
    if not raw.isascii() or not raw.isdigit():
        raise ValueError(raw)
    value = int(raw)
    if value > UINT64_MAX:
        raise ValueError(raw)
    return value


def parse_float(name: str, raw: str | None, policy: ParsePolicy = ParsePolicy.LENIENT) -> ParsedField[float]:
    """Разбирает конечное число с плавающей точкой."""
    if raw is None or raw == "":
        return ParsedField(name, 0.0, ParseOutcome.DEFAULTED, raw)
    try:
        return ParsedField(name, _parse_float_strict(raw), ParseOutcome.OK, raw)
    except ValueError:
        if policy is ParsePolicy.STRICT:
            return ParsedField(name, 0.0, ParseOutcome.REJECTED, raw)
        return ParsedField(name, 0.0, ParseOutcome.DEFAULTED, raw)


def parse_uint64(name: str, raw: str | None, policy: ParsePolicy = ParsePolicy.LENIENT) -> ParsedField[int]:
    """Разбирает беззнаковое 64-битное целое в десятичной записи."""
    if raw is None or raw == "":
        return ParsedField(name, 0, ParseOutcome.DEFAULTED, raw)
    try:
        return ParsedField(name, _parse_uint64_strict(raw), ParseOutcome.OK, raw)
    except ValueError:
        if policy is ParsePolicy.STRICT:
            return ParsedField(name, 0, ParseOutcome.REJECTED, raw)
        return ParsedField(name, 0, ParseOutcome.DEFAULTED, raw)


def parse_location_update(
    params: Mapping[str, str | None],
    policy: ParsePolicy = ParsePolicy.LENIENT,
) -> tuple[LocationUpdate, list[ParsedField]]:
    """
    Собирает LocationUpdate из query-параметров трекера.

    Отсутствующее поле всегда заменяется нулём. Некорректное поле
    заменяется нулём в режиме LENIENT и отклоняет всё обновление в
    режиме STRICT.

    Returns:
        (обновление, результаты разбора по каждому полю)

    Raises:
        InvalidLocationField: в строгом режиме, если есть отклонённые поля
    """
    parsed: list[ParsedField] = []
    for param, field_name in FIELD_MAP.items():
        raw = params.get(param)
        if field_name == "timestamp":
            parsed.append(parse_uint64(param, raw, policy))
        else:
            parsed.append(parse_float(param, raw, policy))

    rejected = {p.name: p.raw for p in parsed if p.outcome is ParseOutcome.REJECTED}
    if rejected:
        raise InvalidLocationField(rejected)

    values = {FIELD_MAP[p.name]: p.value for p in parsed}
    return LocationUpdate(**values), parsed


def parse_count(raw: str | None, default: int = 1, maximum: int = 65535) -> ParsedField[int]:
    """
    Нестрого разбирает параметр count.

    Пустое, нечисловое или превышающее maximum значение заменяется default.
    """
    if raw is None or raw == "":
        return ParsedField("count", default, ParseOutcome.DEFAULTED, raw)
    try:
        value = _parse_uint64_strict(raw)
    except ValueError:
        return ParsedField("count", default, ParseOutcome.DEFAULTED, raw)
    if value > maximum:
        return ParsedField("count", default, ParseOutcome.DEFAULTED, raw)
    return ParsedField("count", value, ParseOutcome.OK, raw)
