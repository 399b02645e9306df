# tests/core/test_tracking_parsing.py
"""
Тесты разбора полей обновления (src/core/tracking/parsing.py).
"""

from __future__ import annotations

import pytest

from src.common.constants import UINT64_MAX, ParseOutcome, ParsePolicy
from src.core.tracking.exceptions import InvalidLocationField
from src.core.tracking.parsing import (
    parse_count,
    parse_float,
    parse_location_update,
    parse_uint64,
)
from src.shared.models.location import LocationUpdate


class TestParseFloat:
    """Тесты для parse_float."""

    @pytest.mark.parametrize("raw,expected", [
        ("52.52", 52.52),
        ("-13.4", -13.4),
        ("0", 0.0),
        ("1e3", 1000.0),
    ])
    def test_valid_values(self, raw: str, expected: float) -> None:
        """Корректные числа разбираются как есть."""
        parsed = parse_float("lat", raw)
        assert parsed.value == expected
        assert parsed.outcome is ParseOutcome.OK

    @pytest.mark.parametrize("raw", ["abc", "nan", "inf", "-Infinity", " 1.5", "1_000", "1,5"])
    def test_malformed_defaults_to_zero(self, raw: str) -> None:
        """Некорректное значение в нестрогом режиме заменяется нулём."""
        parsed = parse_float("speed", raw)
        assert parsed.value == 0.0
        assert parsed.outcome is ParseOutcome.DEFAULTED
        assert parsed.raw == raw

    def test_malformed_rejected_in_strict_mode(self) -> None:
        """В строгом режиме некорректное значение отклоняется."""
        parsed = parse_float("speed", "fast", ParsePolicy.STRICT)
        assert parsed.outcome is ParseOutcome.REJECTED

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_defaults_in_both_modes(self, raw: str | None) -> None:
        """Отсутствующее значение всегда заменяется нулём."""
        assert parse_float("hdop", raw).outcome is ParseOutcome.DEFAULTED
        assert parse_float("hdop", raw, ParsePolicy.STRICT).outcome is ParseOutcome.DEFAULTED


class TestParseUint64:
    """Тесты для parse_uint64."""

    def test_max_value(self) -> None:
        """Максимальное значение uint64 допустимо."""
        parsed = parse_uint64("timestamp", str(UINT64_MAX))
        assert parsed.value == UINT64_MAX
        assert parsed.outcome is ParseOutcome.OK

    @pytest.mark.parametrize("raw", ["-1", "+5", "1.5", str(UINT64_MAX + 1), "１２"])
    def test_invalid_values_default(self, raw: str) -> None:
        """Знак, дробь, переполнение и не-ASCII цифры не принимаются."""
        parsed = parse_uint64("timestamp", raw)
        assert parsed.value == 0
        assert parsed.outcome is ParseOutcome.DEFAULTED

    def test_overflow_not_clamped(self) -> None:
        """Переполнение не заменяется максимумом: 0 или отказ в строгом режиме."""
        raw = "99999999999999999999999"
        assert parse_uint64("timestamp", raw).value == 0
        assert parse_uint64("timestamp", raw, ParsePolicy.STRICT).outcome is ParseOutcome.REJECTED


class TestParseLocationUpdate:
    """Тесты для parse_location_update."""

    def test_full_update(self, submit_params: dict[str, str]) -> None:
        """Все поля разобраны."""
        update, parsed = parse_location_update(submit_params)

        assert update == LocationUpdate(
            latitude=52.520008,
            longitude=13.404954,
            timestamp=1700000000000,
            hdop=3.5,
            altitude=41.2,
            speed=1.75,
        )
        assert all(p.outcome is ParseOutcome.OK for p in parsed)

    def test_non_numeric_speed_becomes_zero(self, submit_params: dict[str, str]) -> None:
        """Нечисловая скорость не отклоняет обновление."""
        submit_params["speed"] = "abc"

        update, parsed = parse_location_update(submit_params)

        assert update.speed == 0.0
        assert update.latitude == 52.520008
        speed = next(p for p in parsed if p.name == "speed")
        assert speed.outcome is ParseOutcome.DEFAULTED

    def test_empty_params_give_zero_update(self) -> None:
        """Без параметров получается нулевое обновление."""
        update, parsed = parse_location_update({})
        assert update == LocationUpdate()
        assert len(parsed) == 6

    def test_strict_mode_rejects(self, submit_params: dict[str, str]) -> None:
        """Строгий режим отклоняет обновление с некорректными полями."""
        submit_params["lat"] = "north"
        submit_params["timestamp"] = "yesterday"

        with pytest.raises(InvalidLocationField) as exc_info:
            parse_location_update(submit_params, ParsePolicy.STRICT)

        assert exc_info.value.fields == {"lat": "north", "timestamp": "yesterday"}

    def test_strict_mode_allows_missing(self) -> None:
        """Строгий режим допускает отсутствующие поля."""
        update, _ = parse_location_update({"lat": "1.5"}, ParsePolicy.STRICT)
        assert update.latitude == 1.5
        assert update.speed == 0.0


class TestParseCount:
    """Тесты для parse_count."""

    @pytest.mark.parametrize("raw,expected", [
        (None, 1),
        ("", 1),
        ("abc", 1),
        ("-3", 1),
        ("65536", 1),
        ("0", 0),
        ("5", 5),
        ("65535", 65535),
    ])
    def test_values(self, raw: str | None, expected: int) -> None:
        """Некорректный или слишком большой count заменяется значением по умолчанию."""
        assert parse_count(raw).value == expected

    def test_custom_default_and_maximum(self) -> None:
        parsed = parse_count("11", default=2, maximum=10)
        assert parsed.value == 2
        assert parsed.outcome is ParseOutcome.DEFAULTED
