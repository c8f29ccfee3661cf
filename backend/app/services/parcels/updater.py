# backend/app/services/parcels/updater.py
"""
Household parcel update: load → reconcile → write → notify.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..events import emit_parcels_updated
from .civil_time import as_utc, day_key
from .operations import calculate_parcel_operations
from .repository import apply_parcel_operations, get_household_parcels
from .types import DesiredParcel, ParcelUpdateSummary

logger = logging.getLogger(__name__)


def update_household_parcels(
    db: Session,
    household_id: str,
    location_id: str,
    windows: Sequence[DesiredParcel],
    now: datetime | None = None,
    deleted_by: str | None = None,
) -> ParcelUpdateSummary:
    """
    Bring a household's future parcels in line with `windows`.

    Only parcels starting after `now` are touched; past parcels are history.
    New parcels whose window has already ended are rejected with ValueError
    before anything is written.
    Everything is written in one transaction.
    """
    now = now or datetime.now(timezone.utc)

    existing = get_household_parcels(db, household_id, since=now)
    ops = calculate_parcel_operations(existing, windows, location_id, household_id)

    past = [c for c in ops.to_create if as_utc(c.pickup_date_time_latest) <= as_utc(now)]
    if past:
        days = ", ".join(day_key(c.pickup_date_time_earliest) for c in past)
        raise ValueError(f"Cannot create parcels that have already passed: {days}")

    if ops.is_empty:
        logger.info(f"Parcels of household {household_id} already up to date")
        return ParcelUpdateSummary()

    try:
        summary = apply_parcel_operations(db, ops, deleted_by=deleted_by, now=now)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Failed to update parcels of household {household_id}")
        raise

    emit_parcels_updated(household_id, location_id, summary)
    return summary
