# backend/app/services/parcels/operations.py
"""
Parcel reconciliation.

Turns "what the household has" + "what the household should have" into a
create/update/delete plan for one pickup location.

Matching rule:
  same location + same civil day (of the earliest pickup instant)
    → UPDATE the existing parcel in place (or nothing if times are identical)
  different location or different day
    → DELETE old + CREATE new

Updating in place keeps the parcel id, its pickup history and any reminder
already tied to it. A move to another day or location is a new appointment.
"""

import logging
import secrets
import string
from collections.abc import Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from .civil_time import as_utc, day_key, resolve_tz
from .config import get_parcels_config
from .types import (
    DesiredParcel,
    ExistingParcel,
    ParcelCreate,
    ParcelOperations,
    ParcelUpdate,
)

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_id(length: int) -> str:
    """URL-safe random id (nanoid alphabet)."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def new_parcel_id() -> str:
    return generate_id(get_parcels_config().parcel_id_length)


def calculate_parcel_operations(
    existing: Iterable[ExistingParcel],
    desired: Sequence[DesiredParcel],
    location_id: str,
    household_id: str,
    tz: ZoneInfo | None = None,
    id_factory: Callable[[], str] | None = None,
) -> ParcelOperations:
    """
    Compute the minimal plan taking `existing` parcels to `desired` windows.

    Args:
        existing: Active parcels of the household (any location)
        desired: Target pickup windows, all at `location_id`
        location_id: Location the desired windows belong to
        household_id: Owner of the parcels
        tz: Civil timezone for day matching (defaults to configured one)
        id_factory: Id generator for new parcels

    Returns:
        ParcelOperations plan. Pure: nothing is written.

    Two desired windows on the same civil day do not share one existing
    parcel: the first one takes it, the rest become creates.
    """
    tz = resolve_tz(tz)
    id_factory = id_factory or new_parcel_id
    ops = ParcelOperations()

    existing = list(existing)

    # civil day → existing parcel at this location (later rows win on duplicates)
    by_day: dict[str, ExistingParcel] = {}
    for parcel in existing:
        if parcel.location_id == location_id:
            by_day[day_key(parcel.earliest, tz)] = parcel

    matched_ids: set[str] = set()

    for window in desired:
        key = day_key(window.earliest, tz)
        match = by_day.pop(key, None)

        if match is None:
            ops.to_create.append(ParcelCreate(
                id=id_factory(),
                household_id=household_id,
                pickup_location_id=location_id,
                pickup_date_time_earliest=window.earliest,
                pickup_date_time_latest=window.latest,
                is_picked_up=False,
            ))
            continue

        matched_ids.add(match.id)

        times_changed = (
            as_utc(match.earliest) != as_utc(window.earliest)
            or as_utc(match.latest) != as_utc(window.latest)
        )
        if times_changed:
            ops.to_update.append(ParcelUpdate(
                id=match.id,
                pickup_date_time_earliest=window.earliest,
                pickup_date_time_latest=window.latest,
            ))

    seen: set[str] = set()
    for parcel in existing:
        if parcel.id in matched_ids or parcel.id in seen:
            continue
        seen.add(parcel.id)
        ops.to_delete.append(parcel.id)

    logger.debug(
        f"Parcel operations for household {household_id} at {location_id}: "
        f"create={len(ops.to_create)} update={len(ops.to_update)} delete={len(ops.to_delete)}"
    )
    return ops


def find_duplicate_days(
    desired: Iterable[DesiredParcel],
    tz: ZoneInfo | None = None,
) -> list[str]:
    """Civil days that occur more than once among desired windows, sorted."""
    tz = resolve_tz(tz)
    seen: set[str] = set()
    duplicates: set[str] = set()
    for window in desired:
        key = day_key(window.earliest, tz)
        if key in seen:
            duplicates.add(key)
        seen.add(key)
    return sorted(duplicates)
