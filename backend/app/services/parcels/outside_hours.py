# backend/app/services/parcels/outside_hours.py
"""
Parcels that fall outside a location's opening hours.

Schedules change after parcels are booked; these helpers find active parcels
whose window no longer fits and count how many a proposed schedule would break.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from zoneinfo import ZoneInfo

from .availability import get_available_time_range, is_time_available
from .civil_time import as_utc, format_time
from .types import LocationScheduleInfo, ParcelTimeInfo

logger = logging.getLogger(__name__)


def is_future_parcel(parcel: ParcelTimeInfo, now: datetime) -> bool:
    return as_utc(parcel.earliest) > as_utc(now)


def is_active_parcel(parcel: ParcelTimeInfo, now: datetime) -> bool:
    """Not picked up and still ahead of `now`."""
    return not parcel.is_picked_up and is_future_parcel(parcel, now)


def is_parcel_outside_opening_hours(
    parcel: ParcelTimeInfo,
    schedule: LocationScheduleInfo,
    tz: ZoneInfo | None = None,
) -> bool:
    """
    True unless the whole pickup window fits the day's opening hours.

    The start must be an available time; the end must be available too, or
    fall exactly on the closing time.
    """
    start_time = format_time(parcel.earliest, tz)
    end_time = format_time(parcel.latest, tz)

    start_ok = is_time_available(parcel.earliest, start_time, schedule, tz).is_available
    end_ok = is_time_available(parcel.latest, end_time, schedule, tz).is_available

    if not end_ok:
        closing = get_available_time_range(parcel.earliest, schedule, tz).latest_time
        if closing is not None and closing == end_time:
            end_ok = True

    return not (start_ok and end_ok)


def filter_active_parcels(
    parcels: Iterable[ParcelTimeInfo],
    now: datetime,
) -> list[ParcelTimeInfo]:
    return [p for p in parcels if is_active_parcel(p, now)]


def filter_outside_hours_parcels(
    parcels: Iterable[ParcelTimeInfo],
    schedule: LocationScheduleInfo,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> list[ParcelTimeInfo]:
    """Active parcels whose window is outside opening hours."""
    return [
        p for p in parcels
        if is_active_parcel(p, now) and is_parcel_outside_opening_hours(p, schedule, tz)
    ]


def count_outside_hours_parcels(
    parcels: Iterable[ParcelTimeInfo],
    schedule: LocationScheduleInfo,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> int:
    return len(filter_outside_hours_parcels(parcels, schedule, now, tz))


def is_parcel_affected_by_schedule_change(
    parcel: ParcelTimeInfo,
    current: LocationScheduleInfo,
    proposed: LocationScheduleInfo,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> bool:
    """Active parcel inside hours today that the proposed schedule would push outside."""
    if not is_active_parcel(parcel, now):
        return False
    if is_parcel_outside_opening_hours(parcel, current, tz):
        return False
    return is_parcel_outside_opening_hours(parcel, proposed, tz)


def count_parcels_affected_by_schedule_change(
    parcels: Iterable[ParcelTimeInfo],
    current: LocationScheduleInfo,
    proposed: LocationScheduleInfo,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> int:
    count = sum(
        1 for p in parcels
        if is_parcel_affected_by_schedule_change(p, current, proposed, now, tz)
    )
    if count:
        logger.info(f"Schedule change would move {count} parcel(s) outside opening hours")
    return count
