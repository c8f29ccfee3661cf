# backend/app/services/parcels/config.py
"""
Configuration for the parcel scheduling core.
"""

from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class ParcelsConfig:
    """
    Configuration for pickup scheduling.

    Attributes:
        timezone_name: IANA key of the organization's civil timezone
        slot_duration_minutes: Default pickup grid step (multiple of 15, max 240)
        parcel_id_length: Length of generated parcel ids
        schedule_cache_ttl_seconds: Redis TTL for cached location schedules
    """
    timezone_name: str = "Europe/Stockholm"
    slot_duration_minutes: int = 15
    parcel_id_length: int = 12
    schedule_cache_ttl_seconds: int = 3600

    def __post_init__(self):
        """Validate configuration."""
        if (
            self.slot_duration_minutes <= 0
            or self.slot_duration_minutes > 240
            or self.slot_duration_minutes % 15 != 0
        ):
            raise ValueError(
                f"slot_duration_minutes must be a positive multiple of 15 up to 240, "
                f"got {self.slot_duration_minutes}"
            )
        if self.parcel_id_length < 8:
            raise ValueError(f"parcel_id_length must be at least 8, got {self.parcel_id_length}")
        try:
            ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone_name}") from e

    @property
    def tz(self) -> ZoneInfo:
        """Fixed civil timezone."""
        return ZoneInfo(self.timezone_name)


@lru_cache
def get_parcels_config() -> ParcelsConfig:
    """
    Get parcels configuration (singleton), built from application settings.
    """
    from ...config import settings

    return ParcelsConfig(
        timezone_name=settings.timezone,
        slot_duration_minutes=settings.default_slot_duration_minutes,
        parcel_id_length=settings.parcel_id_length,
        schedule_cache_ttl_seconds=settings.schedule_cache_ttl_seconds,
    )
