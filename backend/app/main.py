import logging

from fastapi import FastAPI

from .config import settings
from .redis_client import redis_client
from .routers import households, locations

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="Food Parcel Scheduling API")

app.include_router(households.router)
app.include_router(locations.router)


@app.get("/health")
def health():
    try:
        redis_ok = redis_client.ping()
    except Exception:
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
