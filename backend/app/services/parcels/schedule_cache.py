# backend/app/services/parcels/schedule_cache.py
"""
Redis cache for location schedules.

Key format: schedule:location:{location_id}
Value: JSON of LocationScheduleInfo, expires after schedule_cache_ttl_seconds.

Triggers for invalidation:
✓ Schedule period created/replaced/deleted for the location

Redis is best effort: any Redis error means "read from the database".
"""

import json
import logging

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from .config import ParcelsConfig, get_parcels_config
from .repository import load_location_schedule
from .types import LocationScheduleInfo

logger = logging.getLogger(__name__)


class ScheduleRedisStore:
    """Redis storage wrapper for serialized location schedules."""

    KEY_PREFIX = "schedule:location"

    def __init__(self, redis: Redis, config: ParcelsConfig | None = None):
        self.redis = redis
        self.config = config or get_parcels_config()

    def _key(self, location_id: str) -> str:
        return f"{self.KEY_PREFIX}:{location_id}"

    def get(self, location_id: str) -> LocationScheduleInfo | None:
        """Cached schedule, or None on miss."""
        raw = self.redis.get(self._key(location_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return LocationScheduleInfo.from_dict(json.loads(raw))

    def store(self, location_id: str, schedule: LocationScheduleInfo) -> None:
        self.redis.set(
            self._key(location_id),
            json.dumps(schedule.to_dict()),
            ex=self.config.schedule_cache_ttl_seconds,
        )

    def delete(self, location_id: str) -> int:
        return self.redis.delete(self._key(location_id))


def get_location_schedule(
    db: Session,
    location_id: str,
    redis: Redis | None = None,
) -> LocationScheduleInfo:
    """Location schedule, read through the Redis cache when available."""
    if redis is None:
        return load_location_schedule(db, location_id)

    store = ScheduleRedisStore(redis)
    try:
        cached = store.get(location_id)
    except (RedisError, ValueError, KeyError) as e:
        logger.error(f"Schedule cache read failed for location {location_id}: {e}")
        return load_location_schedule(db, location_id)

    if cached is not None:
        return cached

    # Cache miss: load and store
    schedule = load_location_schedule(db, location_id)
    try:
        store.store(location_id, schedule)
    except RedisError as e:
        logger.error(f"Schedule cache write failed for location {location_id}: {e}")
    return schedule


def invalidate_location_schedule(redis: Redis | None, location_id: str) -> int:
    """
    Drop the cached schedule of a location.

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0
    try:
        return ScheduleRedisStore(redis).delete(location_id)
    except RedisError as e:
        logger.error(f"Schedule cache invalidation failed for location {location_id}: {e}")
        return 0
