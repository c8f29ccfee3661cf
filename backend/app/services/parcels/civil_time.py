# backend/app/services/parcels/civil_time.py
"""
Civil-timezone date/time helpers.

Every calendar decision (which day a parcel is on, which weekday a schedule
applies to) is made in the organization's fixed civil timezone, never in the
host's local time. Naive datetimes are treated as UTC, which is how SQLite
hands back timezone-aware columns.
"""

import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from .config import get_parcels_config

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def resolve_tz(tz: ZoneInfo | None = None) -> ZoneInfo:
    return tz or get_parcels_config().tz


def as_utc(instant: datetime) -> datetime:
    """Normalize an instant to an aware UTC datetime."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_civil(instant: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Wall-clock view of an instant in the civil timezone."""
    return as_utc(instant).astimezone(resolve_tz(tz))


def day_key(instant: datetime, tz: ZoneInfo | None = None) -> str:
    """
    Calendar day of an instant as observed in the civil timezone.

    Returns:
        Zero-padded "YYYY-MM-DD" string.
    """
    return to_civil(instant, tz).date().isoformat()


def civil_date(value: date | datetime, tz: ZoneInfo | None = None) -> date:
    """Civil calendar date of a datetime; plain dates pass through."""
    if isinstance(value, datetime):
        return to_civil(value, tz).date()
    return value


def weekday_name(day: date) -> str:
    """Lowercase English weekday name ("monday" ... "sunday")."""
    return WEEKDAY_NAMES[day.weekday()]


def from_civil(day: date, time_str: str, tz: ZoneInfo | None = None) -> datetime:
    """Aware instant for a local wall-clock time on a civil day."""
    minutes = time_str_to_minutes(time_str)
    return datetime.combine(day, time(minutes // 60, minutes % 60), tzinfo=resolve_tz(tz))


def format_time(instant: datetime, tz: ZoneInfo | None = None) -> str:
    """Local "HH:MM" of an instant in the civil timezone."""
    return to_civil(instant, tz).strftime("%H:%M")


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    match = _TIME_RE.match(time_str.strip()) if isinstance(time_str, str) else None
    if not match:
        raise ValueError(f"Invalid time string: {time_str!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"Invalid time string: {time_str!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str | time) -> str:
    """"09:00:00", "9:00" or time(9, 0) → "09:00"."""
    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"
    return minutes_to_time_str(time_str_to_minutes(value))


def is_past_time_slot(
    day: date,
    time_str: str,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> bool:
    """True if the local time on the civil day is already behind `now`."""
    return from_civil(day, time_str, tz) < as_utc(now)
