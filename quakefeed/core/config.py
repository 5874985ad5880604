"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local use against the public feed.

Usage:
    from quakefeed.core.config import settings
    print(settings.USGS_QUERY_URL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "quakefeed"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── USGS feed ──
    USGS_QUERY_URL: str = "https://earthquake.usgs.gov/fdsnws/event/1/query"
    REQUEST_TIMEOUT: float = 15.0  # seconds
    MAX_QUERY_LIMIT: int = 20_000  # server-side cap on `limit`

    # ── Validation ──
    MAGNITUDE_CEILING: float = 10.0

    # ── Boundaries ──
    BOUNDARY_DATA_PATH: Optional[str] = None  # None → packaged dataset

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
