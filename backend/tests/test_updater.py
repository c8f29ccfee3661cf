import json
from datetime import datetime, time, timezone

import pytest

from app.models.generated import FoodParcels
from app.services.parcels.types import DesiredParcel
from app.services.parcels.updater import update_household_parcels
from conftest import STOCKHOLM, add_parcel, next_weekday


def window(day, hour, minute=0):
    start = datetime.combine(day, time(hour, minute), tzinfo=STOCKHOLM)
    return DesiredParcel(earliest=start, latest=start.replace(minute=minute + 15))


def test_update_household_parcels(db, location, household, fake_event_redis):
    monday = next_weekday(0)
    tuesday = next_weekday(1)
    existing = window(monday, 10)
    add_parcel(db, "p1", existing.earliest, existing.latest)

    summary = update_household_parcels(
        db, "hh-1", "loc-main", [window(monday, 13), window(tuesday, 10)],
    )

    assert summary.updated == ["p1"]
    assert len(summary.created) == 1
    assert summary.deleted == []

    queue, raw = fake_event_redis.rpush.call_args.args
    event = json.loads(raw)
    assert queue == "events:p2p"
    assert event["type"] == "parcels.updated"
    assert event["household_id"] == "hh-1"
    assert event["updated"] == ["p1"]


def test_running_twice_is_a_noop(db, location, household, fake_event_redis):
    monday = next_weekday(0)
    windows = [window(monday, 10)]

    first = update_household_parcels(db, "hh-1", "loc-main", windows)
    second = update_household_parcels(db, "hh-1", "loc-main", windows)

    assert len(first.created) == 1
    assert second.created == second.updated == second.deleted == []
    assert fake_event_redis.rpush.call_count == 1


def test_past_parcels_are_left_alone(db, location, household):
    past = datetime(2024, 1, 8, 10, tzinfo=timezone.utc)
    add_parcel(db, "history", past, past.replace(minute=15))

    summary = update_household_parcels(db, "hh-1", "loc-main", [])

    assert summary.deleted == []


def test_picked_up_parcels_are_never_changed(db, location, household):
    monday = next_weekday(0)
    collected = window(monday, 10)
    add_parcel(db, "picked", collected.earliest, collected.latest, is_picked_up=True)

    summary = update_household_parcels(db, "hh-1", "loc-main", [])

    assert summary.deleted == []
    parcel = db.get(FoodParcels, "picked")
    db.refresh(parcel)
    assert parcel.deleted_at is None


def test_picked_up_parcel_does_not_absorb_a_new_time(db, location, household):
    monday = next_weekday(0)
    collected = window(monday, 10)
    add_parcel(db, "picked", collected.earliest, collected.latest, is_picked_up=True)

    summary = update_household_parcels(db, "hh-1", "loc-main", [window(monday, 14)])

    assert summary.updated == []
    assert len(summary.created) == 1
    parcel = db.get(FoodParcels, "picked")
    db.refresh(parcel)
    assert parcel.pickup_date_time_earliest.replace(tzinfo=timezone.utc) == collected.earliest


def test_new_parcel_in_the_past_is_rejected(db, location, household, fake_event_redis):
    past = DesiredParcel(
        earliest=datetime(2024, 1, 8, 10, tzinfo=timezone.utc),
        latest=datetime(2024, 1, 8, 10, 15, tzinfo=timezone.utc),
    )

    with pytest.raises(ValueError, match="2024-01-08"):
        update_household_parcels(db, "hh-1", "loc-main", [past])

    assert db.query(FoodParcels).count() == 0
    assert not fake_event_redis.rpush.called


def test_window_ending_exactly_now_counts_as_past(db, location, household):
    now = datetime(2030, 3, 4, 10, 15, tzinfo=timezone.utc)
    ended = DesiredParcel(earliest=now.replace(minute=0), latest=now)

    with pytest.raises(ValueError):
        update_household_parcels(db, "hh-1", "loc-main", [ended], now=now)
