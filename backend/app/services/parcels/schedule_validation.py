# backend/app/services/parcels/schedule_validation.py
"""
Validation of schedule periods before they are stored.

The availability lookup assumes periods of one location never overlap and
that open days have opening < closing. These checks enforce that on write.
"""

from collections.abc import Iterable

from .civil_time import WEEKDAY_NAMES, time_str_to_minutes
from .types import ScheduleDay, SchedulePeriod


def date_ranges_overlap(a: SchedulePeriod, b: SchedulePeriod) -> bool:
    """Inclusive overlap; a period never overlaps itself (same id)."""
    if a.id and b.id and a.id == b.id:
        return False
    return a.start_date <= b.end_date and a.end_date >= b.start_date


def find_overlapping_period(
    candidate: SchedulePeriod,
    existing: Iterable[SchedulePeriod],
) -> SchedulePeriod | None:
    """First existing period overlapping `candidate`, ignoring its own id."""
    for period in existing:
        if candidate.id is not None and period.id == candidate.id:
            continue
        if date_ranges_overlap(candidate, period):
            return period
    return None


def validate_period_days(days: Iterable[ScheduleDay]) -> list[str]:
    """
    Check weekday entries of a period.

    Returns:
        List of error messages, empty when valid.
    """
    errors = []
    seen: set[str] = set()
    for day in days:
        if day.weekday not in WEEKDAY_NAMES:
            errors.append(f"Unknown weekday: {day.weekday}")
            continue
        if day.weekday in seen:
            errors.append(f"Duplicate weekday: {day.weekday}")
        seen.add(day.weekday)

        if not day.is_open:
            continue
        if not day.opening_time or not day.closing_time:
            errors.append(f"{day.weekday}: opening and closing time required")
            continue
        try:
            opening = time_str_to_minutes(day.opening_time)
            closing = time_str_to_minutes(day.closing_time)
        except ValueError as e:
            errors.append(f"{day.weekday}: {e}")
            continue
        if opening >= closing:
            errors.append(f"{day.weekday}: opening time must be before closing time")
    return errors
