# backend/app/schemas/parcels.py
"""
Pydantic schemas for household parcel updates.
"""

from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from ..services.parcels.civil_time import as_utc
from ..services.parcels.operations import find_duplicate_days
from ..services.parcels.types import DesiredParcel


class PickupWindow(BaseModel):
    """Desired pickup window (absolute instants)."""
    earliest: datetime
    latest: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_order(self):
        if as_utc(self.earliest) > as_utc(self.latest):
            raise ValueError("earliest must not be after latest")
        return self

    def to_desired(self) -> DesiredParcel:
        return DesiredParcel(earliest=self.earliest, latest=self.latest)


class HouseholdParcelsUpdate(BaseModel):
    """Full list of future pickups for a household at one location."""
    location_id: str
    parcels: list[PickupWindow] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_one_parcel_per_day(self):
        duplicates = find_duplicate_days(p.to_desired() for p in self.parcels)
        if duplicates:
            raise ValueError(f"More than one parcel on the same day: {', '.join(duplicates)}")
        return self


class ParcelUpdateSummaryRead(BaseModel):
    created: list[str]
    updated: list[str]
    deleted: list[str]
    skipped: int = 0

    model_config = {"from_attributes": True}


class ParcelTimeRead(BaseModel):
    id: str
    earliest: datetime
    latest: datetime
    is_picked_up: bool

    model_config = {"from_attributes": True}


class OutsideHoursResponse(BaseModel):
    """Active parcels of a location that no longer fit its opening hours."""
    location_id: str
    count: int
    parcels: list[ParcelTimeRead]

    model_config = {"from_attributes": True}
