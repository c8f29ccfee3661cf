# backend/app/redis_client.py

from redis import Redis

from .config import settings

# Connections are opened lazily on first command
redis_client = Redis.from_url(
    settings.redis_url,
    socket_timeout=2.0,
    decode_responses=True,
)


# FastAPI dependency (overridable in tests)
def get_redis() -> Redis | None:
    return redis_client
