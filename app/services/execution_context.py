"""
실행 컨텍스트 빌더 (Execution Context Builder)

역할:
    - 가격 규칙 정의 + 평가 컨텍스트(예약 시간, 기준 시각, override)로부터 변수 바인딩을 계산

Rationale:
    [예약 기간 변수]
    -> booking_hours가 기준값이며 days/weeks/months는 24h / 7일 / 30일 고정 비율로 나눕니다.
       달력 기반 월 계산은 하지 않습니다. 네 키는 override/initialValue를 항상 무시합니다.

    [날짜 vs 시간 기본값]
    -> 날짜 기본값은 now의 UTC 자정, 시간 기본값은 now의 로컬 벽시계 초입니다.
       기존 규칙과의 호환을 위해 이 비대칭을 그대로 유지합니다.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from app.exception.service.price_rule_exception import InvalidLiteralError
from app.models.price_rule import BOOKING_DURATION_KEYS, PriceRuleDefinition, PriceRuleExecutionContext
from app.utils.literal_parser import (
    DATE_LITERAL_REGEX,
    parse_date_literal,
    parse_datetime_text,
    parse_number_text,
    seconds_into_day,
    start_of_utc_day_ms,
    time_literal_to_seconds,
    to_local,
)

HOURS_IN_DAY = 24
HOURS_IN_WEEK = HOURS_IN_DAY * 7
HOURS_IN_MONTH = HOURS_IN_DAY * 30

Binding = Union[float, str]


def build_execution_variable_map(
    definition: PriceRuleDefinition,
    context: PriceRuleExecutionContext,
) -> Dict[str, Binding]:
    """
    Derive the binding for every declared variable, in declaration order.

    Args:
        definition: Rule definition whose ``variables`` decide which keys are bound.
        context: Booking hours, optional ``now`` and caller overrides.

    Returns:
        dict: key → float (number/date/time variables) or str (text variables).
    """
    now = context.now or datetime.now().astimezone()
    overrides = context.variable_overrides or {}
    bindings: Dict[str, Binding] = {}

    booking_hours = float(context.booking_hours)
    if not math.isfinite(booking_hours):
        booking_hours = 0.0
    durations = {
        "booking_hours": booking_hours,
        "booking_days": booking_hours / HOURS_IN_DAY,
        "booking_weeks": booking_hours / HOURS_IN_WEEK,
        "booking_months": booking_hours / HOURS_IN_MONTH,
    }

    default_date = float(start_of_utc_day_ms(now))
    default_time = float(seconds_into_day(now))
    default_day_of_week = float(to_local(now).weekday())  # Monday=0

    for variable in definition.variables:
        key = variable.key
        override = overrides.get(key)

        if key in BOOKING_DURATION_KEYS:
            bindings[key] = durations[key]
            continue

        if variable.type == "text":
            bindings[key] = override if isinstance(override, str) else (variable.initial_value or "")
            continue

        source = override if override is not None else variable.initial_value

        if variable.type == "date":
            bindings[key] = _parse_date_override(source, default_date)
            continue

        if variable.type == "time":
            bindings[key] = _parse_time_override(source, default_time)
            continue

        if key == "day_of_week":
            fallback = default_day_of_week
        else:
            fallback = _parse_finite(variable.initial_value)
            if fallback is None:
                fallback = 0.0
        parsed = _parse_finite(override)
        bindings[key] = parsed if parsed is not None else fallback

    return bindings


def build_numeric_variable_map(variables: Dict[str, Binding]) -> Dict[str, float]:
    """수식 계산기 입력용: 숫자 바인딩만 추려낸 맵 (text 변수 제외)"""
    return {
        key: float(value)
        for key, value in variables.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def _parse_finite(value: Any) -> Optional[float]:
    """유한한 숫자로 해석되면 float, 아니면 None (bool/빈 문자열은 숫자로 보지 않음)"""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        parsed = float(value)
        return parsed if math.isfinite(parsed) else None
    if isinstance(value, str):
        return parse_number_text(value)
    return None


def _parse_date_override(value: Any, fallback: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else fallback
    try:
        if isinstance(value, (datetime, date)):
            return float(start_of_utc_day_ms(value))
        if isinstance(value, str):
            trimmed = value.strip()
            if DATE_LITERAL_REGEX.match(trimmed):
                return float(parse_date_literal(trimmed))
            parsed = parse_datetime_text(trimmed)
            if parsed is not None:
                return float(start_of_utc_day_ms(parsed))
    except InvalidLiteralError:
        return fallback
    return fallback


def _parse_time_override(value: Any, fallback: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else fallback
    if isinstance(value, datetime):
        return float(seconds_into_day(value))
    if isinstance(value, str):
        try:
            return float(time_literal_to_seconds(value))
        except InvalidLiteralError:
            return fallback
    return fallback
