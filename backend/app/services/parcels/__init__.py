# backend/app/services/parcels/__init__.py
"""
Parcel scheduling core.

Pure:     civil_time, operations (reconciler), availability, outside_hours,
          schedule_validation
Adapters: repository (SQLAlchemy), schedule_cache (Redis), updater
"""

from .config import ParcelsConfig, get_parcels_config
from .civil_time import day_key
from .operations import calculate_parcel_operations
from .availability import (
    generate_time_slots_between,
    get_available_time_range,
    is_date_available,
    is_time_available,
)
from .outside_hours import filter_outside_hours_parcels
from .schedule_cache import get_location_schedule, invalidate_location_schedule
from .updater import update_household_parcels

__all__ = [
    "ParcelsConfig",
    "get_parcels_config",
    "day_key",
    "calculate_parcel_operations",
    "generate_time_slots_between",
    "get_available_time_range",
    "is_date_available",
    "is_time_available",
    "filter_outside_hours_parcels",
    "get_location_schedule",
    "invalidate_location_schedule",
    "update_household_parcels",
]
