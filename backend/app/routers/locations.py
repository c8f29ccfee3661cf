# backend/app/routers/locations.py
"""
Pickup location endpoints: opening-hour schedules and availability.

GET    /locations/{id}/availability     - Is the date open, and when
GET    /locations/{id}/timeslots        - Selectable pickup times for a date
GET    /locations/{id}/available-dates  - Open dates in a range
GET    /locations/{id}/outside-hours    - Active parcels outside opening hours
POST   /locations/{id}/schedules        - Add a schedule period
PUT    /locations/{id}/schedules/{sid}  - Replace a schedule period
DELETE /locations/{id}/schedules/{sid}  - Remove a schedule period
"""

from datetime import date, datetime, time, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..models.generated import (
    PickupLocations as DBPickupLocations,
    PickupLocationScheduleDays as DBScheduleDays,
    PickupLocationSchedules as DBSchedules,
)
from ..schemas.parcels import OutsideHoursResponse, ParcelTimeRead
from ..schemas.schedules import (
    AvailableDatesResponse,
    DateAvailabilityResponse,
    ScheduleIn,
    ScheduleWriteResponse,
    ScheduleRead,
    TimeSlotsResponse,
)
from ..services.events import emit_schedule_changed
from ..services.parcels import get_location_schedule, invalidate_location_schedule
from ..services.parcels.availability import (
    is_date_available,
    list_available_dates,
    list_available_time_slots,
)
from ..services.parcels.civil_time import civil_date, time_str_to_minutes
from ..services.parcels.operations import generate_id
from ..services.parcels.outside_hours import (
    count_parcels_affected_by_schedule_change,
    filter_outside_hours_parcels,
)
from ..services.parcels.repository import (
    get_location_parcels,
    load_location_schedule,
    schedule_period_from_row,
)
from ..services.parcels.schedule_validation import find_overlapping_period
from ..services.parcels.types import LocationScheduleInfo, SchedulePeriod

router = APIRouter(prefix="/locations", tags=["locations"])

MAX_RANGE_DAYS = 366


def _get_location_or_404(db: Session, location_id: str) -> DBPickupLocations:
    obj = db.get(DBPickupLocations, location_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Location not found")
    return obj


# ── Availability ─────────────────────────────────────────────────────────


@router.get("/{id}/availability", response_model=DateAvailabilityResponse)
def get_date_availability(
    id: str,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    _get_location_or_404(db, id)
    schedule = get_location_schedule(db, id, redis)
    result = is_date_available(target_date, schedule)

    return DateAvailabilityResponse(
        location_id=id,
        date=target_date,
        is_available=result.is_available,
        reason=result.reason.value if result.reason else None,
        opening_time=result.opening_time,
        closing_time=result.closing_time,
    )


@router.get("/{id}/timeslots", response_model=TimeSlotsResponse)
def get_timeslots(
    id: str,
    target_date: date = Query(..., alias="date"),
    slot_duration: int | None = Query(None, gt=0, le=240),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    """Pickup start times for a date; past times are left out."""
    location = _get_location_or_404(db, id)
    duration = slot_duration or location.default_slot_duration_minutes

    schedule = get_location_schedule(db, id, redis)
    times = list_available_time_slots(
        target_date,
        schedule,
        duration,
        now=datetime.now(timezone.utc),
    )

    return TimeSlotsResponse(
        location_id=id,
        date=target_date,
        slot_duration_minutes=duration,
        times=times,
    )


@router.get("/{id}/available-dates", response_model=AvailableDatesResponse)
def get_available_dates(
    id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    _get_location_or_404(db, id)

    if start_date is None:
        start_date = civil_date(datetime.now(timezone.utc))
    if end_date is None:
        end_date = start_date + timedelta(days=27)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Range cannot exceed {MAX_RANGE_DAYS} days")

    schedule = get_location_schedule(db, id, redis)
    return AvailableDatesResponse(
        location_id=id,
        start_date=start_date,
        end_date=end_date,
        dates=list_available_dates(start_date, end_date, schedule),
    )


@router.get("/{id}/outside-hours", response_model=OutsideHoursResponse)
def get_outside_hours_parcels(
    id: str,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    _get_location_or_404(db, id)
    now = datetime.now(timezone.utc)

    schedule = get_location_schedule(db, id, redis)
    parcels = get_location_parcels(db, id, since=now)
    outside = filter_outside_hours_parcels(parcels, schedule, now)

    return OutsideHoursResponse(
        location_id=id,
        count=len(outside),
        parcels=[ParcelTimeRead.model_validate(p) for p in outside],
    )


# ── Schedules ────────────────────────────────────────────────────────────


@router.post(
    "/{id}/schedules",
    response_model=ScheduleWriteResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_schedule(
    id: str,
    data: ScheduleIn,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    _get_location_or_404(db, id)

    candidate = _period_from_input(generate_id(8), data)
    obj = DBSchedules(id=candidate.id, pickup_location_id=id)
    return _save_period(db, redis, id, obj, candidate)


@router.put("/{id}/schedules/{schedule_id}", response_model=ScheduleWriteResponse)
def update_schedule(
    id: str,
    schedule_id: str,
    data: ScheduleIn,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    """Replace a schedule period; reports parcels the new hours leave outside."""
    obj = db.get(DBSchedules, schedule_id)
    if not obj or obj.pickup_location_id != id:
        raise HTTPException(status_code=404, detail="Schedule not found")

    candidate = _period_from_input(schedule_id, data)
    return _save_period(db, redis, id, obj, candidate)


@router.delete("/{id}/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    id: str,
    schedule_id: str,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBSchedules, schedule_id)
    if not obj or obj.pickup_location_id != id:
        raise HTTPException(status_code=404, detail="Schedule not found")

    db.delete(obj)
    db.commit()

    invalidate_location_schedule(redis, id)
    emit_schedule_changed(id, schedule_id)


def _period_from_input(schedule_id: str, data: ScheduleIn) -> SchedulePeriod:
    return SchedulePeriod(
        id=schedule_id,
        name=data.name,
        start_date=data.start_date,
        end_date=data.end_date,
        days=tuple(d.to_day() for d in data.days),
    )


def _save_period(
    db: Session,
    redis: Redis | None,
    location_id: str,
    obj: DBSchedules,
    candidate: SchedulePeriod,
) -> ScheduleWriteResponse:
    """Check overlap, count affected parcels, write the period and its days."""
    current = load_location_schedule(db, location_id)

    overlap = find_overlapping_period(candidate, current.schedules)
    if overlap:
        raise HTTPException(
            status_code=409,
            detail=(
                f'Schedule overlaps with existing schedule "{overlap.name}" '
                f"({overlap.start_date.isoformat()} - {overlap.end_date.isoformat()})"
            ),
        )

    now = datetime.now(timezone.utc)
    proposed = LocationScheduleInfo(
        schedules=tuple(p for p in current.schedules if p.id != candidate.id) + (candidate,)
    )
    affected = count_parcels_affected_by_schedule_change(
        get_location_parcels(db, location_id, since=now), current, proposed, now,
    )

    obj.name = candidate.name
    obj.start_date = candidate.start_date
    obj.end_date = candidate.end_date
    obj.days.clear()
    for day in candidate.days:
        obj.days.append(DBScheduleDays(
            id=generate_id(8),
            weekday=day.weekday,
            is_open=day.is_open,
            opening_time=_to_time(day.opening_time),
            closing_time=_to_time(day.closing_time),
        ))
    db.add(obj)
    db.commit()
    db.refresh(obj)

    invalidate_location_schedule(redis, location_id)
    emit_schedule_changed(location_id, obj.id, affected)

    return ScheduleWriteResponse(
        schedule=ScheduleRead.model_validate(schedule_period_from_row(obj)),
        affected_parcels=affected,
    )


def _to_time(value: str | None) -> time | None:
    if value is None:
        return None
    minutes = time_str_to_minutes(value)
    return time(minutes // 60, minutes % 60)
