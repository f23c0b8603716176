"""Application settings parsed from environment variables and defaults."""

import json
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _split_list(value: str | list[str] | None) -> list[str]:
    """Normalize list-valued settings from JSON, CSV, or list inputs."""
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return []


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "Eventrank API"
    environment: str = "development"
    api_prefix: str = "/api"

    database_url: str = "postgresql+asyncpg://eventrank:eventrank@db:5432/eventrank"
    test_database_url: Optional[str] = None

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    admin_user_ids: list[str] | str = Field(default_factory=list)

    log_level: str = "INFO"
    cors_origins: list[str] | str = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.copy())
    redis_url: str = "redis://redis:6379/0"
    worker_queue_names: list[str] | str = Field(default_factory=lambda: ["default", "scoring"])

    local_timezone: str = "America/New_York"
    feed_window_days: int = 14
    signal_window_days: int = 365
    centroid_cache_ttl_minutes: int = 60
    explanation_signal_limit: int = 50
    embedding_dimensions: int = 1536
    personalization_inclusion_cutoff: float = 0.3
    tier_good_threshold: float = 0.5
    tier_great_threshold: float = 0.75
    top_events_limit: int = 30
    rescore_interval_hours: int = 24

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize CORS origins, falling back to local dev hosts."""
        return _split_list(value) or DEFAULT_CORS_ORIGINS.copy()

    @field_validator("worker_queue_names", mode="before")
    @classmethod
    def _split_worker_queue_names(cls, value: str | list[str] | None) -> list[str]:
        """Normalize worker queue names; an empty value means the default queue."""
        return _split_list(value) or ["default"]

    @field_validator("admin_user_ids", mode="before")
    @classmethod
    def _split_admin_user_ids(cls, value: str | list[str] | None) -> list[str]:
        """Normalize the super-admin allowlist to lowercase UUID strings."""
        return [item.lower() for item in _split_list(value)]

    @model_validator(mode="after")
    def _validate_personalization_thresholds(self) -> "Settings":
        """Keep tier thresholds strictly ordered above the inclusion cutoff."""
        if not (
            self.tier_great_threshold > self.tier_good_threshold > self.personalization_inclusion_cutoff
        ):
            msg = (
                "TIER_GREAT_THRESHOLD > TIER_GOOD_THRESHOLD > PERSONALIZATION_INCLUSION_CUTOFF must hold "
                f"(got {self.tier_great_threshold}, {self.tier_good_threshold}, "
                f"{self.personalization_inclusion_cutoff})"
            )
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _validate_local_timezone(self) -> "Settings":
        """Reject timezone names that zoneinfo cannot resolve."""
        try:
            ZoneInfo(self.local_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"LOCAL_TIMEZONE is not a valid IANA timezone: {self.local_timezone}") from exc
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()
