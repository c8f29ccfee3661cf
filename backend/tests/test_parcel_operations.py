from datetime import datetime, timezone
from itertools import count

import pytest

from app.services.parcels.operations import (
    ID_ALPHABET,
    calculate_parcel_operations,
    find_duplicate_days,
    generate_id,
    new_parcel_id,
)
from app.services.parcels.types import DesiredParcel, ExistingParcel
from conftest import local

LOCATION = "loc-main"
OTHER_LOCATION = "loc-other"
HOUSEHOLD = "hh-1"


@pytest.fixture
def ids():
    counter = count(1)
    return lambda: f"new-{next(counter)}"


def existing(parcel_id, earliest, latest, location_id=LOCATION):
    return ExistingParcel(id=parcel_id, location_id=location_id, earliest=earliest, latest=latest)


def desired(earliest, latest):
    return DesiredParcel(earliest=earliest, latest=latest)


def calc(existing_parcels, desired_parcels, tz, ids, location_id=LOCATION):
    return calculate_parcel_operations(
        existing_parcels, desired_parcels, location_id, HOUSEHOLD, tz=tz, id_factory=ids,
    )


def test_identical_windows_produce_empty_plan(tz, ids):
    parcels = [
        existing("p1", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        existing("p2", local(2025, 10, 20, 11), local(2025, 10, 20, 11, 15)),
    ]
    ops = calc(parcels, [desired(p.earliest, p.latest) for p in parcels], tz, ids)

    assert ops.to_create == []
    assert ops.to_update == []
    assert ops.to_delete == []
    assert ops.is_empty


def test_same_instant_in_other_offset_is_noop(tz, ids):
    earliest = local(2025, 10, 13, 10)
    latest = local(2025, 10, 13, 10, 15)
    parcels = [existing("p1", earliest.astimezone(timezone.utc), latest.astimezone(timezone.utc))]

    ops = calc(parcels, [desired(earliest, latest)], tz, ids)

    assert ops.is_empty


def test_same_day_time_change_updates_in_place(tz, ids):
    parcels = [existing("p1", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15))]
    new_earliest = local(2025, 10, 13, 14)
    new_latest = local(2025, 10, 13, 14, 15)

    ops = calc(parcels, [desired(new_earliest, new_latest)], tz, ids)

    assert len(ops.to_update) == 1
    update = ops.to_update[0]
    assert update.id == "p1"
    assert update.pickup_date_time_earliest == new_earliest
    assert update.pickup_date_time_latest == new_latest
    assert ops.to_create == []
    assert ops.to_delete == []


def test_latest_only_change_is_an_update(tz, ids):
    parcels = [existing("p1", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15))]

    ops = calc(parcels, [desired(local(2025, 10, 13, 10), local(2025, 10, 13, 10, 30))], tz, ids)

    assert [u.id for u in ops.to_update] == ["p1"]


def test_location_change_deletes_and_creates(tz, ids):
    earliest = local(2025, 10, 13, 10)
    latest = local(2025, 10, 13, 10, 15)
    parcels = [existing("p1", earliest, latest, location_id=OTHER_LOCATION)]

    ops = calc(parcels, [desired(earliest, latest)], tz, ids)

    assert ops.to_delete == ["p1"]
    assert ops.to_update == []
    assert len(ops.to_create) == 1
    created = ops.to_create[0]
    assert created.pickup_location_id == LOCATION
    assert created.household_id == HOUSEHOLD
    assert created.pickup_date_time_earliest == earliest
    assert created.is_picked_up is False


def test_update_across_local_midnight(tz, ids):
    parcels = [existing(
        "p1",
        datetime.fromisoformat("2025-10-15T00:15:00+02:00"),
        datetime.fromisoformat("2025-10-15T00:30:00+02:00"),
    )]

    ops = calc(parcels, [desired(
        datetime.fromisoformat("2025-10-15T01:00:00+02:00"),
        datetime.fromisoformat("2025-10-15T01:15:00+02:00"),
    )], tz, ids)

    assert [u.id for u in ops.to_update] == ["p1"]
    assert ops.to_create == []
    assert ops.to_delete == []


def test_previous_local_day_is_not_matched(tz, ids):
    parcels = [existing(
        "p1",
        datetime.fromisoformat("2025-10-14T23:00:00+02:00"),
        datetime.fromisoformat("2025-10-14T23:15:00+02:00"),
    )]

    ops = calc(parcels, [desired(
        datetime.fromisoformat("2025-10-15T00:15:00+02:00"),
        datetime.fromisoformat("2025-10-15T00:30:00+02:00"),
    )], tz, ids)

    assert ops.to_delete == ["p1"]
    assert [c.id for c in ops.to_create] == ["new-1"]
    assert ops.to_update == []


def test_year_boundary_days_never_match(tz, ids):
    parcels = [existing("p1", local(2025, 12, 31, 10), local(2025, 12, 31, 10, 15))]

    ops = calc(parcels, [desired(local(2026, 1, 1, 10), local(2026, 1, 1, 10, 15))], tz, ids)

    assert ops.to_delete == ["p1"]
    assert len(ops.to_create) == 1


def test_single_digit_month_and_day_match(tz, ids):
    parcels = [existing("p1", local(2025, 1, 5, 9), local(2025, 1, 5, 9, 15))]

    ops = calc(parcels, [desired(local(2025, 1, 5, 12), local(2025, 1, 5, 12, 15))], tz, ids)

    assert [u.id for u in ops.to_update] == ["p1"]


def test_unmatched_existing_are_deleted_and_unmatched_desired_created(tz, ids):
    parcels = [
        existing("keep", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        existing("drop", local(2025, 10, 20, 10), local(2025, 10, 20, 10, 15)),
    ]

    ops = calc(parcels, [
        desired(local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        desired(local(2025, 10, 27, 10), local(2025, 10, 27, 10, 15)),
    ], tz, ids)

    assert ops.to_update == []
    assert ops.to_delete == ["drop"]
    assert [c.id for c in ops.to_create] == ["new-1"]
    assert ops.to_create[0].pickup_date_time_earliest == local(2025, 10, 27, 10)


def test_empty_desired_deletes_everything(tz, ids):
    parcels = [
        existing("p1", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        existing("p2", local(2025, 10, 14, 10), local(2025, 10, 14, 10, 15), location_id=OTHER_LOCATION),
    ]

    ops = calc(parcels, [], tz, ids)

    assert sorted(ops.to_delete) == ["p1", "p2"]
    assert ops.to_create == []


def test_duplicate_same_day_desired_windows_become_extra_creates(tz, ids):
    parcels = [existing("p1", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15))]

    ops = calc(parcels, [
        desired(local(2025, 10, 13, 12), local(2025, 10, 13, 12, 15)),
        desired(local(2025, 10, 13, 15), local(2025, 10, 13, 15, 15)),
    ], tz, ids)

    # First window takes the existing parcel, the second is a new one
    assert [u.id for u in ops.to_update] == ["p1"]
    assert ops.to_update[0].pickup_date_time_earliest == local(2025, 10, 13, 12)
    assert len(ops.to_create) == 1
    assert ops.to_create[0].pickup_date_time_earliest == local(2025, 10, 13, 15)
    assert ops.to_delete == []


def test_existing_ids_never_in_both_update_and_delete(tz, ids):
    parcels = [
        existing("a", local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        existing("b", local(2025, 10, 13, 11), local(2025, 10, 13, 11, 15)),
        existing("c", local(2025, 10, 14, 10), local(2025, 10, 14, 10, 15), location_id=OTHER_LOCATION),
    ]

    ops = calc(parcels, [desired(local(2025, 10, 13, 12), local(2025, 10, 13, 12, 15))], tz, ids)

    updated = {u.id for u in ops.to_update}
    deleted = ops.to_delete
    assert len(deleted) == len(set(deleted))
    assert not updated & set(deleted)
    assert updated | set(deleted) == {"a", "b", "c"}


def test_default_id_factory_generates_unique_ids(tz):
    ops = calculate_parcel_operations(
        [],
        [
            desired(local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
            desired(local(2025, 10, 14, 10), local(2025, 10, 14, 10, 15)),
        ],
        LOCATION,
        HOUSEHOLD,
        tz=tz,
    )

    created_ids = [c.id for c in ops.to_create]
    assert len(set(created_ids)) == 2
    assert all(len(i) == 12 for i in created_ids)


def test_generate_id_alphabet():
    value = generate_id(32)
    assert len(value) == 32
    assert set(value) <= set(ID_ALPHABET)
    assert len(new_parcel_id()) == 12


def test_find_duplicate_days(tz):
    windows = [
        desired(local(2025, 10, 13, 10), local(2025, 10, 13, 10, 15)),
        desired(local(2025, 10, 13, 23, 30), local(2025, 10, 13, 23, 45)),
        desired(datetime(2025, 10, 13, 22, 15, tzinfo=timezone.utc), datetime(2025, 10, 13, 22, 30, tzinfo=timezone.utc)),
    ]
    # 22:15 UTC is 00:15 on the 14th in Stockholm
    assert find_duplicate_days(windows, tz) == ["2025-10-13"]
    assert find_duplicate_days(windows[:1], tz) == []
