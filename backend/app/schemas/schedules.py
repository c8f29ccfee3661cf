# backend/app/schemas/schedules.py
"""
Pydantic schemas for location schedules and availability.
"""

from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.parcels.civil_time import normalize_time_str
from ..services.parcels.schedule_validation import validate_period_days
from ..services.parcels.types import ScheduleDay

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class ScheduleDayIn(BaseModel):
    weekday: Weekday
    is_open: bool = True
    opening_time: Optional[str] = None  # "HH:MM"
    closing_time: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("opening_time", "closing_time")
    @classmethod
    def normalize_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_time_str(value)

    def to_day(self) -> ScheduleDay:
        return ScheduleDay(
            weekday=self.weekday,
            is_open=self.is_open,
            opening_time=self.opening_time if self.is_open else None,
            closing_time=self.closing_time if self.is_open else None,
        )


class ScheduleIn(BaseModel):
    name: str
    start_date: date
    end_date: date
    days: list[ScheduleDayIn] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_period(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        errors = validate_period_days(d.to_day() for d in self.days)
        if errors:
            raise ValueError("; ".join(errors))
        return self


class ScheduleDayRead(BaseModel):
    weekday: str
    is_open: bool
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None

    model_config = {"from_attributes": True}


class ScheduleRead(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    days: list[ScheduleDayRead]

    model_config = {"from_attributes": True}


class ScheduleWriteResponse(BaseModel):
    schedule: ScheduleRead
    affected_parcels: int = Field(description="Active parcels pushed outside opening hours by this schedule")

    model_config = {"from_attributes": True}


class DateAvailabilityResponse(BaseModel):
    location_id: str
    date: date
    is_available: bool
    reason: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None

    model_config = {"from_attributes": True}


class TimeSlotsResponse(BaseModel):
    location_id: str
    date: date
    slot_duration_minutes: int
    times: list[str]

    model_config = {"from_attributes": True}


class AvailableDatesResponse(BaseModel):
    location_id: str
    start_date: date
    end_date: date
    dates: list[date]

    model_config = {"from_attributes": True}
