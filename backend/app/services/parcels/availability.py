# backend/app/services/parcels/availability.py
"""
Location availability.

Answers "is this date open?", "is this time open?" and "what are the opening
hours of this date?" against a location's schedule periods, always in the
fixed civil timezone.

Period lookup:
  periods containing the civil day, in (start_date, end_date, id) order;
  the first one with an entry for the weekday decides.
Periods are not supposed to overlap. If they do, the choice is logged.

Closing boundary:
  a pickup may START at opening_time and any grid step before closing_time;
  a start exactly at closing_time is outside hours.
"""

import logging
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from .civil_time import (
    civil_date,
    is_past_time_slot,
    minutes_to_time_str,
    normalize_time_str,
    time_str_to_minutes,
    weekday_name,
)
from .types import (
    DateAvailability,
    LocationScheduleInfo,
    ScheduleDay,
    SchedulePeriod,
    TimeAvailability,
    TimeRange,
    UnavailableReason,
)

logger = logging.getLogger(__name__)


def find_schedule_day(
    day: date,
    schedule: LocationScheduleInfo,
) -> tuple[SchedulePeriod, ScheduleDay] | None:
    """Resolve the period and weekday entry governing a civil day."""
    matching = [p for p in schedule.ordered() if p.contains(day)]
    if len(matching) > 1:
        logger.warning(
            f"Overlapping schedule periods for {day.isoformat()}: "
            f"{[p.id or p.name for p in matching]}, using {matching[0].id or matching[0].name}"
        )

    weekday = weekday_name(day)
    for period in matching:
        day_config = period.day_for(weekday)
        if day_config is not None:
            return period, day_config
    return None


def is_date_available(
    value: date | datetime,
    schedule: LocationScheduleInfo,
    tz: ZoneInfo | None = None,
) -> DateAvailability:
    """Check whether the location is open at all on the civil day of `value`."""
    day = civil_date(value, tz)
    found = find_schedule_day(day, schedule)

    if found is None:
        return DateAvailability(is_available=False, reason=UnavailableReason.NO_SCHEDULE)

    _, day_config = found
    if not day_config.is_open:
        return DateAvailability(is_available=False, reason=UnavailableReason.CLOSED)

    return DateAvailability(
        is_available=True,
        opening_time=_maybe_normalize(day_config.opening_time),
        closing_time=_maybe_normalize(day_config.closing_time),
    )


def get_available_time_range(
    value: date | datetime,
    schedule: LocationScheduleInfo,
    tz: ZoneInfo | None = None,
) -> TimeRange:
    """Opening/closing time of the civil day, both None when closed."""
    availability = is_date_available(value, schedule, tz)
    if not availability.is_available:
        return TimeRange()
    return TimeRange(
        earliest_time=availability.opening_time,
        latest_time=availability.closing_time,
    )


def is_time_available(
    value: date | datetime,
    time_str: str,
    schedule: LocationScheduleInfo,
    tz: ZoneInfo | None = None,
    now: datetime | None = None,
) -> TimeAvailability:
    """
    Check a local "HH:MM" start time on the civil day of `value`.

    With `now`, a start time already behind it is unavailable as PAST.
    """
    availability = is_date_available(value, schedule, tz)
    if not availability.is_available:
        return TimeAvailability(is_available=False, reason=availability.reason)

    if not availability.opening_time or not availability.closing_time:
        # Open without hours: nothing to restrict against
        return TimeAvailability(is_available=True)

    minutes = time_str_to_minutes(time_str)
    opening = time_str_to_minutes(availability.opening_time)
    closing = time_str_to_minutes(availability.closing_time)

    if minutes < opening or minutes >= closing:
        return TimeAvailability(is_available=False, reason=UnavailableReason.OUTSIDE_HOURS)
    if now is not None and is_past_time_slot(civil_date(value, tz), time_str, now, tz):
        return TimeAvailability(is_available=False, reason=UnavailableReason.PAST)
    return TimeAvailability(is_available=True)


class TimeSlotSequence:
    """
    Equally spaced "HH:MM" times from `earliest` to `latest`.

    Lazy and re-iterable: every iteration starts over.
    """

    def __init__(self, earliest: str, latest: str, step_minutes: int, inclusive: bool):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be positive, got {step_minutes}")
        self.start = time_str_to_minutes(earliest)
        self.end = time_str_to_minutes(latest)
        self.step = step_minutes
        self.inclusive = inclusive

    def __iter__(self) -> Iterator[str]:
        t = self.start
        while t < self.end or (self.inclusive and t == self.end):
            yield minutes_to_time_str(t)
            t += self.step

    def __len__(self) -> int:
        if self.end < self.start:
            return 0
        span = self.end - self.start
        count = span // self.step
        if span % self.step or self.inclusive:
            count += 1
        return count

    def __repr__(self) -> str:
        return (
            f"TimeSlotSequence({minutes_to_time_str(self.start)!r}, "
            f"{minutes_to_time_str(self.end)!r}, {self.step}, inclusive={self.inclusive})"
        )


def generate_time_slots_between(
    earliest_time: str,
    latest_time: str,
    slot_duration_minutes: int,
    inclusive: bool = True,
) -> TimeSlotSequence:
    """Grid of local times between two "HH:MM" bounds."""
    return TimeSlotSequence(earliest_time, latest_time, slot_duration_minutes, inclusive)


def list_available_time_slots(
    day: date,
    schedule: LocationScheduleInfo,
    slot_duration_minutes: int,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> list[str]:
    """
    Selectable pickup start times for a civil day.

    Returns:
        Sorted "HH:MM" strings; past times are dropped when `now` is given.
    """
    time_range = get_available_time_range(day, schedule, tz)
    if not time_range.earliest_time or not time_range.latest_time:
        return []

    times = []
    for time_str in generate_time_slots_between(
        time_range.earliest_time,
        time_range.latest_time,
        slot_duration_minutes,
        True,
    ):
        if not is_time_available(day, time_str, schedule, tz, now).is_available:
            continue
        times.append(time_str)
    return times


def list_available_dates(
    start_date: date,
    end_date: date,
    schedule: LocationScheduleInfo,
    tz: ZoneInfo | None = None,
) -> list[date]:
    """Civil days in [start_date, end_date] on which the location is open."""
    dates = []
    current = start_date
    while current <= end_date:
        if is_date_available(current, schedule, tz).is_available:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def _maybe_normalize(value: str | None) -> str | None:
    return normalize_time_str(value) if value else None
