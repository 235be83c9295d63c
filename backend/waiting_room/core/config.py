"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Virtual Waiting Room"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Queue admission
    QUEUE_BATCH_SIZE: int = Field(default=5, gt=0)
    QUEUE_BATCH_INTERVAL_MS: int = Field(default=3000, gt=0)
    QUEUE_ENTRY_TTL_SEC: int = Field(default=3600, gt=0)  # 1 hour
    ADMISSION_TTL_SEC: int = Field(default=120, gt=0)
    RESERVATION_TTL_SEC: int = Field(default=120, gt=0)
    REDEEM_URL_PATH: str = "/reserve"

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_LOCK: Literal["redis", "local"] = "redis"
    SCHEDULER_LEASE_MS: int = Field(default=10000, gt=0)

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
