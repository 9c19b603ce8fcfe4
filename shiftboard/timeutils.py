from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Literal
from zoneinfo import ZoneInfo

from shiftboard.errors import ValidationError

ShiftType = Literal["morning", "afternoon", "evening"]

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_time(value: str, field: str = "time") -> str:
    """Validate an ``HH:MM`` string and return it zero-padded."""
    match = _TIME_RE.match((value or "").strip())
    if match is None:
        raise ValidationError(f"{field} must be a time in HH:MM format", field=field)
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def time_to_minutes(value: str) -> int:
    hh, mm = value.split(":")
    return int(hh) * 60 + int(mm)


def ensure_time_range(start: str, end: str, *, start_field: str = "start", end_field: str = "end") -> tuple[str, str]:
    start = normalize_time(start, start_field)
    end = normalize_time(end, end_field)
    if time_to_minutes(start) >= time_to_minutes(end):
        raise ValidationError(f"{start_field} must be before {end_field}", field=start_field)
    return start, end


def duration_hours(start: str, end: str) -> float:
    # No rounding here; display code formats.
    return (time_to_minutes(end) - time_to_minutes(start)) / 60


def shift_type_for(start: str) -> ShiftType:
    hour = time_to_minutes(start) // 60
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    return "evening"


def parse_day(value: str, field: str = "date") -> date:
    """Parse ``YYYY-MM-DD`` as a calendar day, never through a UTC timestamp."""
    text = (value or "").strip()
    if not _DATE_RE.match(text):
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format", field=field)
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"{field} is not a valid calendar date", field=field) from exc


def format_day(value: date) -> str:
    return value.isoformat()


def local_today(tz: ZoneInfo) -> date:
    return datetime.now(tz).date()


def week_bounds(day: date) -> tuple[date, date]:
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def daterange(start: date, end: date) -> list[date]:
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def resolve_range(start: date | None, end: date | None, tz: ZoneInfo) -> tuple[date, date]:
    """Inclusive day range; both bounds or neither (defaults to the current local week)."""
    if start is None and end is None:
        return week_bounds(local_today(tz))
    if start is None or end is None:
        missing = "startDate" if start is None else "endDate"
        raise ValidationError(f"{missing} is required when filtering by date range", field=missing)
    if end < start:
        raise ValidationError("endDate must not be before startDate", field="endDate")
    return start, end
