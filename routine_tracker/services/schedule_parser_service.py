"""Date/time parsing and normalization helpers."""

from __future__ import annotations

import datetime
import re
from typing import Any, Iterable, List

from dateutil import parser as date_parser

from routine_tracker.core.errors import ValidationError

END_OF_DAY = datetime.time(23, 59, 59)

_TIME_PATTERN = re.compile(r"([01]?\d|2[0-3])\s*:\s*([0-5]\d)(?:\s*:\s*([0-5]\d))?")


def _parse_date_local(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise ValidationError("Invalid date format. Use YYYY-MM-DD format")


def _normalize_time_of_day(value: Any) -> str | None:
    """Normalize ``H:MM`` / ``HH:MM:SS`` to ``HH:MM:SS``; empty values mean no time."""
    if value is None:
        return None
    if isinstance(value, datetime.time):
        return value.strftime("%H:%M:%S")
    if not isinstance(value, str):
        raise ValidationError("Invalid time format. Use HH:MM:SS format")
    text = value.strip()
    if not text:
        return None

    match = _TIME_PATTERN.fullmatch(text)
    if not match:
        raise ValidationError("Invalid time format. Use HH:MM:SS format")
    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(3) or 0)
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def _validate_duration(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 1440:
        raise ValidationError("Duration must be between 1 and 1440 minutes")
    return value


def _validate_repeat_days(value: Any) -> List[int]:
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    if not isinstance(value, Iterable) or isinstance(value, (bytes, dict)):
        raise ValidationError("Repeat days must be provided")

    days: set[int] = set()
    for item in value:
        # 日本語: 小数や真偽値は切り捨てずに拒否 / English: Floats and booleans are rejected, never truncated
        if isinstance(item, str) and item.strip().isdigit():
            item = int(item.strip())
        if isinstance(item, bool) or not isinstance(item, int) or not 1 <= item <= 7:
            raise ValidationError("Repeat days must be integers between 1 (Monday) and 7 (Sunday)")
        days.add(item)
    if not days:
        raise ValidationError("Repeat days must be provided")
    return sorted(days)


def _format_repeat_days(days: Iterable[int]) -> str:
    return ",".join(str(day) for day in sorted(set(days)))


def _parse_timestamp(value: Any) -> datetime.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
        # 日本語: 壁時計として扱うため tz 情報は落とす / English: Stored as wall-clock time, drop tzinfo
        return parsed.replace(tzinfo=None)
    raise ValidationError(f"Invalid timestamp: {value!r}")


def _bool_from_value(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def _iso_weekday(date_local: datetime.date) -> int:
    # 日本語: 1=月 ... 7=日 / English: 1=Monday ... 7=Sunday
    return date_local.isoweekday()


def _combine(date_local: datetime.date, time_of_day: str) -> datetime.datetime:
    return datetime.datetime.combine(date_local, datetime.time.fromisoformat(time_of_day))


def _end_of_day(date_local: datetime.date) -> datetime.datetime:
    return datetime.datetime.combine(date_local, END_OF_DAY)


def _week_bounds(anchor_date: datetime.date) -> tuple[datetime.date, datetime.date]:
    start = anchor_date - datetime.timedelta(days=anchor_date.weekday())
    end = start + datetime.timedelta(days=6)
    return start, end


__all__ = [
    "END_OF_DAY",
    "_parse_date_local",
    "_normalize_time_of_day",
    "_validate_duration",
    "_validate_repeat_days",
    "_format_repeat_days",
    "_parse_timestamp",
    "_bool_from_value",
    "_iso_weekday",
    "_combine",
    "_end_of_day",
    "_week_bounds",
]
