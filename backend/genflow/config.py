from __future__ import annotations
"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Generation client settings.

    Loaded from environment variables (``GENFLOW_`` prefix) or .env file.
    All durations are seconds.
    """

    # --- Application ---
    APP_NAME: str = "genflow"
    DEBUG: bool = False

    # --- Generation API ---
    API_BASE_URL: str = "http://localhost:3000"
    API_TOKEN: str = ""

    # --- Timeouts ---
    REQUEST_TIMEOUT: float = 45.0
    POLL_INTERVAL: float = 3.0
    POLL_TIMEOUT: float = 300.0

    # --- Progress smoothing ---
    PROGRESS_TICK_INTERVAL: float = 0.3
    PROGRESS_CRAWL_CEILING: float = 96.0

    # --- Tracker fan-out (Redis Pub/Sub) ---
    REDIS_URL: str = "redis://localhost:6379/0"
    TRACKER_CHANNEL_PREFIX: str = "genflow:jobs:"
    REDIS_CONNECT_TIMEOUT: float = 0.5
    REDIS_SOCKET_TIMEOUT: float = 0.5

    model_config = {
        "env_prefix": "GENFLOW_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
