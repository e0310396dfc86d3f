"""
가격 규칙 리터럴(date / datetime / time / number) 파싱 유틸

모든 시각 값은 조건 비교를 위해 숫자로 환원됩니다.
    - date, datetime: epoch milliseconds
    - time: 자정 이후 경과 초
"""

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from app.exception.service.price_rule_exception import InvalidLiteralError

DATE_LITERAL_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_LITERAL_REGEX = re.compile(r"^\d{1,2}:\d{2}(?::\d{2})?$")
# "7:30 PM", "07:30pm" 처럼 자오선 표기가 붙은 시간
TIME_WITH_MERIDIEM_REGEX = re.compile(r"^(?P<time>\d{1,2}:\d{2}(?::\d{2})?)\s*(?P<meridiem>[AaPp][Mm])$")
NUMBER_LITERAL_REGEX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def normalize_time_literal(value: str, meridiem: Optional[str] = None) -> str:
    """
    Normalize an ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` literal to zero-padded 24-hour form.

    Args:
        value: Time text without meridiem.
        meridiem: Optional ``AM``/``PM``; when given, hours must be 1..12.

    Returns:
        str: ``HH:MM`` or ``HH:MM:SS`` (seconds kept only if present in the input).

    Raises:
        InvalidLiteralError: On bad shape, out-of-range fields or an unknown meridiem.
    """
    trimmed = value.strip()
    if not TIME_LITERAL_REGEX.match(trimmed):
        raise InvalidLiteralError(f'Invalid time literal "{value}". Expected HH:MM or HH:MM:SS.')

    segments = trimmed.split(":")
    hours = int(segments[0])
    minutes = int(segments[1])
    seconds = int(segments[2]) if len(segments) > 2 else None

    if minutes > 59:
        raise InvalidLiteralError(f'Invalid time literal "{value}".')
    if seconds is not None and seconds > 59:
        raise InvalidLiteralError(f'Invalid time literal "{value}".')

    if meridiem:
        normalized_meridiem = meridiem.strip().upper()
        if normalized_meridiem not in ("AM", "PM"):
            raise InvalidLiteralError(f'Invalid meridiem "{meridiem}" in time literal.')
        if hours < 1 or hours > 12:
            raise InvalidLiteralError(f'Invalid time literal "{value}" for 12-hour clock.')
        if hours == 12:
            hours = 0 if normalized_meridiem == "AM" else 12
        elif normalized_meridiem == "PM":
            hours += 12
    elif hours > 23:
        raise InvalidLiteralError(f'Invalid time literal "{value}".')

    parts = [f"{hours:02d}", f"{minutes:02d}"]
    if seconds is not None:
        parts.append(f"{seconds:02d}")
    return ":".join(parts)


def parse_time_literal(value: str) -> str:
    """자오선 접미사("7:30 PM")를 허용하는 normalize_time_literal 래퍼"""
    trimmed = value.strip()
    match = TIME_WITH_MERIDIEM_REGEX.match(trimmed)
    if match:
        return normalize_time_literal(match.group("time"), match.group("meridiem"))
    return normalize_time_literal(trimmed)


def time_literal_to_seconds(value: str) -> int:
    """시간 리터럴을 자정 이후 경과 초로 변환"""
    normalized = parse_time_literal(value)
    segments = [int(part) for part in normalized.split(":")]
    hours, minutes = segments[0], segments[1]
    seconds = segments[2] if len(segments) > 2 else 0
    return hours * 3600 + minutes * 60 + seconds


def seconds_into_day(value: datetime) -> int:
    """
    로컬 벽시계 기준 자정 이후 경과 초

    Note:
        날짜 기본값은 UTC 자정 기준이지만 시간 기본값은 로컬 시각 기준입니다.
        기존 저장된 규칙과의 호환을 위해 이 비대칭을 유지합니다.
    """
    local = to_local(value)
    return local.hour * 3600 + local.minute * 60 + local.second


def to_local(value: datetime) -> datetime:
    """naive datetime은 이미 로컬 시각으로 보고, aware datetime은 시스템 로컬 타임존으로 변환"""
    if value.tzinfo is None:
        return value
    return value.astimezone()


def to_epoch_ms(value: datetime) -> int:
    """datetime → epoch milliseconds (naive는 로컬 시각으로 해석)"""
    aware = value if value.tzinfo is not None else value.astimezone()
    return (aware - EPOCH) // _ONE_MS


def start_of_utc_day_ms(value: Any) -> int:
    """
    datetime/date의 UTC 기준 자정 epoch milliseconds

    Raises:
        InvalidLiteralError: UTC 변환 결과가 표현 가능한 연도(1..9999)를 벗어나는 경우
    """
    if isinstance(value, datetime):
        try:
            utc_date = value.astimezone(timezone.utc).date()
        except (ValueError, OverflowError):
            raise InvalidLiteralError(f'Date "{value.isoformat()}" is out of range.')
    else:
        utc_date = value
    midnight = datetime(utc_date.year, utc_date.month, utc_date.day, tzinfo=timezone.utc)
    return (midnight - EPOCH) // _ONE_MS


def parse_date_literal(value: str) -> int:
    """
    ``YYYY-MM-DD`` 리터럴을 UTC 자정 epoch milliseconds로 변환

    Raises:
        InvalidLiteralError: 형식이 다르거나 존재하지 않는 날짜(2024-13-01 등)인 경우
    """
    trimmed = value.strip()
    if not DATE_LITERAL_REGEX.match(trimmed):
        raise InvalidLiteralError(f'Invalid date literal "{value}". Expected YYYY-MM-DD.')
    try:
        parsed = date.fromisoformat(trimmed)
    except ValueError:
        raise InvalidLiteralError(f'Invalid date literal "{value}".')
    return start_of_utc_day_ms(parsed)


def parse_datetime_text(value: str) -> Optional[datetime]:
    """
    일반 날짜/시각 문자열 파싱. 실패 시 None.

    ISO-8601을 먼저 시도하고, 그 외 표기("Jan 15 2024 10:30")는 dateutil로 해석합니다.
    시각 없는 ``YYYY-MM-DD``는 UTC 자정으로 봅니다.
    """
    trimmed = value.strip()
    if not trimmed:
        return None
    if DATE_LITERAL_REGEX.match(trimmed):
        try:
            parsed_date = date.fromisoformat(trimmed)
        except ValueError:
            return None
        return datetime(parsed_date.year, parsed_date.month, parsed_date.day, tzinfo=timezone.utc)
    try:
        return datetime.fromisoformat(trimmed.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return date_parser.parse(trimmed)
    except (ValueError, OverflowError):
        return None


def parse_datetime_literal(value: str) -> int:
    """datetime 리터럴을 epoch milliseconds로 변환"""
    parsed = parse_datetime_text(value)
    if parsed is None:
        raise InvalidLiteralError(f'Invalid datetime literal "{value}".')
    try:
        return to_epoch_ms(parsed)
    except (ValueError, OverflowError):
        # 로컬 → UTC 변환 시 1년 이전/9999년 이후로 넘어가는 경우
        raise InvalidLiteralError(f'Invalid datetime literal "{value}".')


def parse_number_text(value: str) -> Optional[float]:
    """10진수 표기("12", "-3.5", ".5", "1e3")만 유한한 float로 변환. 그 외("1_000", "inf")는 None."""
    trimmed = value.strip()
    if not NUMBER_LITERAL_REGEX.match(trimmed):
        return None
    parsed = float(trimmed)
    return parsed if math.isfinite(parsed) else None


def parse_number_literal(value: str) -> float:
    trimmed = value.strip()
    parsed = parse_number_text(trimmed)
    if parsed is None:
        raise InvalidLiteralError(f'Invalid number literal "{trimmed}".')
    return parsed
