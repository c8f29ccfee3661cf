# backend/app/services/parcels/repository.py
"""
Database access for parcels and location schedules.

Converts ORM rows to the in-memory types in types.py and writes parcel
operation plans. Functions here never commit; the caller owns the transaction.
Instants are written as UTC.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, selectinload

from .civil_time import as_utc, normalize_time_str
from .types import (
    ExistingParcel,
    LocationScheduleInfo,
    ParcelOperations,
    ParcelTimeInfo,
    ParcelUpdateSummary,
    ScheduleDay,
    SchedulePeriod,
)

logger = logging.getLogger(__name__)


# ── Schedules ────────────────────────────────────────────────────────────


def load_location_schedule(db: Session, location_id: str) -> LocationScheduleInfo:
    """All schedule periods (with weekday rows) of a location."""
    from ...models.generated import PickupLocationSchedules

    rows = (
        db.query(PickupLocationSchedules)
        .options(selectinload(PickupLocationSchedules.days))
        .filter(PickupLocationSchedules.pickup_location_id == location_id)
        .order_by(PickupLocationSchedules.start_date, PickupLocationSchedules.id)
        .all()
    )
    return LocationScheduleInfo(schedules=tuple(schedule_period_from_row(r) for r in rows))


def schedule_period_from_row(row) -> SchedulePeriod:
    return SchedulePeriod(
        id=row.id,
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        days=tuple(
            ScheduleDay(
                weekday=d.weekday,
                is_open=bool(d.is_open),
                opening_time=normalize_time_str(d.opening_time) if d.opening_time else None,
                closing_time=normalize_time_str(d.closing_time) if d.closing_time else None,
            )
            for d in row.days
        ),
    )


# ── Parcels (read) ───────────────────────────────────────────────────────


def get_household_parcels(
    db: Session,
    household_id: str,
    since: datetime,
) -> list[ExistingParcel]:
    """
    Parcels of a household the updater may change: not soft-deleted,
    not picked up, and starting after `since`.
    """
    from ...models.generated import FoodParcels

    rows = (
        db.query(FoodParcels)
        .filter(
            FoodParcels.household_id == household_id,
            FoodParcels.deleted_at.is_(None),
            FoodParcels.is_picked_up.is_(False),
            FoodParcels.pickup_date_time_earliest > as_utc(since),
        )
        .order_by(FoodParcels.pickup_date_time_earliest)
        .all()
    )
    return [
        ExistingParcel(
            id=r.id,
            location_id=r.pickup_location_id,
            earliest=as_utc(r.pickup_date_time_earliest),
            latest=as_utc(r.pickup_date_time_latest),
        )
        for r in rows
    ]


def get_location_parcels(
    db: Session,
    location_id: str,
    since: datetime,
) -> list[ParcelTimeInfo]:
    """Active parcels at a location starting after `since`."""
    from ...models.generated import FoodParcels

    rows = (
        db.query(FoodParcels)
        .filter(
            FoodParcels.pickup_location_id == location_id,
            FoodParcels.deleted_at.is_(None),
            FoodParcels.pickup_date_time_earliest >= as_utc(since),
        )
        .order_by(FoodParcels.pickup_date_time_earliest)
        .all()
    )
    return [
        ParcelTimeInfo(
            id=r.id,
            earliest=as_utc(r.pickup_date_time_earliest),
            latest=as_utc(r.pickup_date_time_latest),
            is_picked_up=bool(r.is_picked_up),
        )
        for r in rows
    ]


# ── Parcels (write) ──────────────────────────────────────────────────────


def apply_parcel_operations(
    db: Session,
    ops: ParcelOperations,
    deleted_by: str | None = None,
    now: datetime | None = None,
) -> ParcelUpdateSummary:
    """
    Write a plan: soft-delete, then update, then insert.

    Inserts skip rows that collide with an active parcel on
    (household, location, earliest, latest), so replaying the same plan
    cannot double-book.
    """
    from ...models.generated import FoodParcels

    now = as_utc(now or datetime.now(timezone.utc))
    summary = ParcelUpdateSummary()

    for parcel_id in ops.to_delete:
        count = (
            db.query(FoodParcels)
            .filter(FoodParcels.id == parcel_id, FoodParcels.deleted_at.is_(None))
            .update(
                {"deleted_at": now, "deleted_by_user_id": deleted_by},
                synchronize_session=False,
            )
        )
        if count:
            summary.deleted.append(parcel_id)
        else:
            logger.info(f"Parcel {parcel_id} already deleted, skipping")

    for upd in ops.to_update:
        count = (
            db.query(FoodParcels)
            .filter(FoodParcels.id == upd.id, FoodParcels.deleted_at.is_(None))
            .update(
                {
                    "pickup_date_time_earliest": as_utc(upd.pickup_date_time_earliest),
                    "pickup_date_time_latest": as_utc(upd.pickup_date_time_latest),
                },
                synchronize_session=False,
            )
        )
        if count:
            summary.updated.append(upd.id)
        else:
            logger.warning(f"Parcel {upd.id} not found for update")

    if ops.to_create:
        rows = [
            {
                "id": c.id,
                "household_id": c.household_id,
                "pickup_location_id": c.pickup_location_id,
                "pickup_date_time_earliest": as_utc(c.pickup_date_time_earliest),
                "pickup_date_time_latest": as_utc(c.pickup_date_time_latest),
                "is_picked_up": c.is_picked_up,
            }
            for c in ops.to_create
        ]
        insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = (
            insert(FoodParcels)
            .values(rows)
            .on_conflict_do_nothing(
                index_elements=[
                    FoodParcels.household_id,
                    FoodParcels.pickup_location_id,
                    FoodParcels.pickup_date_time_earliest,
                    FoodParcels.pickup_date_time_latest,
                ],
                index_where=FoodParcels.deleted_at.is_(None),
            )
            .returning(FoodParcels.id)
        )
        created = list(db.execute(stmt).scalars().all())
        summary.created.extend(created)
        summary.skipped = len(rows) - len(created)
        if summary.skipped:
            logger.info(f"Skipped {summary.skipped} duplicate parcel insert(s)")

    logger.info(
        f"Applied parcel operations: created={len(summary.created)} "
        f"updated={len(summary.updated)} deleted={len(summary.deleted)}"
    )
    return summary
