# backend/app/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # project root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/parcels.db"
    redis_url: str = "redis://localhost:6379/0"

    # Fixed civil timezone of the organization (IANA key)
    timezone: str = "Europe/Stockholm"

    default_slot_duration_minutes: int = 15
    parcel_id_length: int = 12
    schedule_cache_ttl_seconds: int = 3600

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite path → absolute, anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
