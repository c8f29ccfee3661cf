"""
backend/app/services/events.py

Event emitter: pushes events to a Redis queue for downstream consumers
(pickup reminders and change notices are sent from there).

Queue:
- events:p2p: instant delivery
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit an event.

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def emit_parcels_updated(household_id: str, location_id: str, summary) -> None:
    """Household parcels were created, moved or removed."""
    if not (summary.created or summary.updated or summary.deleted):
        return
    emit_event("parcels.updated", {
        "household_id": household_id,
        "location_id": location_id,
        "created": summary.created,
        "updated": summary.updated,
        "deleted": summary.deleted,
    })


def emit_schedule_changed(location_id: str, schedule_id: str, affected_parcels: int = 0) -> None:
    """Opening hours of a location changed; reminders may need resending."""
    emit_event("schedules.changed", {
        "location_id": location_id,
        "schedule_id": schedule_id,
        "affected_parcels": affected_parcels,
    })
