# backend/app/services/parcels/types.py
"""
In-memory value types shared by the reconciler and the availability evaluator.

Nothing here touches the database: repository.py converts ORM rows into these.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


# ── Parcels ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExistingParcel:
    """A persisted, active parcel as seen by the reconciler."""
    id: str
    location_id: str
    earliest: datetime
    latest: datetime


@dataclass(frozen=True)
class DesiredParcel:
    """A pickup window the caller wants the household to end up with."""
    earliest: datetime
    latest: datetime


@dataclass(frozen=True)
class ParcelCreate:
    id: str
    household_id: str
    pickup_location_id: str
    pickup_date_time_earliest: datetime
    pickup_date_time_latest: datetime
    is_picked_up: bool = False


@dataclass(frozen=True)
class ParcelUpdate:
    id: str
    pickup_date_time_earliest: datetime
    pickup_date_time_latest: datetime


@dataclass
class ParcelOperations:
    """
    Create/update/delete plan for one household at one location.

    Every existing parcel id appears at most once across to_update and to_delete.
    """
    to_create: list[ParcelCreate] = field(default_factory=list)
    to_update: list[ParcelUpdate] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


@dataclass(frozen=True)
class ParcelTimeInfo:
    """Parcel fields needed for opening-hours checks."""
    id: str
    earliest: datetime
    latest: datetime
    is_picked_up: bool = False


# ── Schedules ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScheduleDay:
    weekday: str  # "monday" ... "sunday"
    is_open: bool
    opening_time: str | None = None  # "HH:MM", local
    closing_time: str | None = None


@dataclass(frozen=True)
class SchedulePeriod:
    """Weekly opening hours valid for the inclusive range [start_date, end_date]."""
    start_date: date
    end_date: date
    days: tuple[ScheduleDay, ...] = ()
    id: str | None = None
    name: str = ""

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def day_for(self, weekday: str) -> ScheduleDay | None:
        for day in self.days:
            if day.weekday == weekday:
                return day
        return None


@dataclass(frozen=True)
class LocationScheduleInfo:
    """All schedule periods of one location."""
    schedules: tuple[SchedulePeriod, ...] = ()

    def ordered(self) -> list[SchedulePeriod]:
        """Stable lookup order: by start date, then end date, then id."""
        return sorted(
            self.schedules,
            key=lambda p: (p.start_date, p.end_date, p.id or ""),
        )

    def to_dict(self) -> dict:
        return {
            "schedules": [
                {
                    "id": p.id,
                    "name": p.name,
                    "start_date": p.start_date.isoformat(),
                    "end_date": p.end_date.isoformat(),
                    "days": [
                        {
                            "weekday": d.weekday,
                            "is_open": d.is_open,
                            "opening_time": d.opening_time,
                            "closing_time": d.closing_time,
                        }
                        for d in p.days
                    ],
                }
                for p in self.schedules
            ]
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LocationScheduleInfo":
        return cls(
            schedules=tuple(
                SchedulePeriod(
                    id=p.get("id"),
                    name=p.get("name") or "",
                    start_date=date.fromisoformat(p["start_date"]),
                    end_date=date.fromisoformat(p["end_date"]),
                    days=tuple(
                        ScheduleDay(
                            weekday=d["weekday"],
                            is_open=bool(d["is_open"]),
                            opening_time=d.get("opening_time"),
                            closing_time=d.get("closing_time"),
                        )
                        for d in p.get("days", [])
                    ),
                )
                for p in data.get("schedules", [])
            )
        )


# ── Availability results ─────────────────────────────────────────────────


class UnavailableReason(str, Enum):
    NO_SCHEDULE = "no_schedule"
    CLOSED = "closed"
    OUTSIDE_HOURS = "outside_hours"
    PAST = "past"


@dataclass(frozen=True)
class DateAvailability:
    is_available: bool
    reason: UnavailableReason | None = None
    opening_time: str | None = None
    closing_time: str | None = None


@dataclass(frozen=True)
class TimeAvailability:
    is_available: bool
    reason: UnavailableReason | None = None


@dataclass(frozen=True)
class TimeRange:
    earliest_time: str | None = None
    latest_time: str | None = None


@dataclass
class ParcelUpdateSummary:
    """What actually happened when a plan was written."""
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: int = 0  # creates dropped by the active-parcel unique index
