from datetime import date, datetime, time, timedelta, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import enable_sqlite_fk
from app.models import Base
from app.models.generated import (
    FoodParcels,
    Households,
    PickupLocations,
    PickupLocationScheduleDays,
    PickupLocationSchedules,
)

STOCKHOLM = ZoneInfo("Europe/Stockholm")


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Wall-clock time in Stockholm as an aware datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=STOCKHOLM)


def next_weekday(weekday: int, days_ahead: int = 14) -> date:
    """First date with the given weekday (0 = Monday) at least `days_ahead` days from today."""
    start = datetime.now(timezone.utc).astimezone(STOCKHOLM).date() + timedelta(days=days_ahead)
    return start + timedelta(days=(weekday - start.weekday()) % 7)


@pytest.fixture
def tz():
    return STOCKHOLM


@pytest.fixture(autouse=True)
def fake_event_redis(monkeypatch):
    """Keep the event emitter away from a real Redis server."""
    fake = MagicMock()
    monkeypatch.setattr("app.services.events.redis_client", fake)
    return fake


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_fk)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def location(db):
    obj = PickupLocations(
        id="loc-main",
        name="Klara Kyrka",
        street_address="Klarabergsgatan 37",
        postal_code="11121",
        default_slot_duration_minutes=15,
    )
    db.add(obj)
    db.add(PickupLocations(
        id="loc-other",
        name="Frihamnskyrkan",
        street_address="Frihamnsgatan 1",
        postal_code="11556",
        default_slot_duration_minutes=15,
    ))
    db.commit()
    return obj


@pytest.fixture
def household(db):
    obj = Households(id="hh-1", first_name="Anna", last_name="Berg", phone_number="+46701234567")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def weekday_schedule(db, location):
    """Open Monday to Friday 09:00-17:00 from yesterday for a year."""
    today = datetime.now(timezone.utc).astimezone(STOCKHOLM).date()
    schedule = PickupLocationSchedules(
        id="sched-1",
        pickup_location_id=location.id,
        name="Default",
        start_date=today - timedelta(days=1),
        end_date=today + timedelta(days=365),
    )
    for i, weekday in enumerate(("monday", "tuesday", "wednesday", "thursday", "friday")):
        schedule.days.append(PickupLocationScheduleDays(
            id=f"day-{i}",
            weekday=weekday,
            is_open=True,
            opening_time=time(9, 0),
            closing_time=time(17, 0),
        ))
    schedule.days.append(PickupLocationScheduleDays(id="day-5", weekday="saturday", is_open=False))
    db.add(schedule)
    db.commit()
    return schedule


def add_parcel(db, parcel_id, earliest, latest, location_id="loc-main", household_id="hh-1", **kwargs):
    obj = FoodParcels(
        id=parcel_id,
        household_id=household_id,
        pickup_location_id=location_id,
        pickup_date_time_earliest=earliest.astimezone(timezone.utc),
        pickup_date_time_latest=latest.astimezone(timezone.utc),
        **kwargs,
    )
    db.add(obj)
    db.commit()
    return obj
