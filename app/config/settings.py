"""
Application settings and configuration
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Basic app settings
    DEBUG: bool = Field(default=False)
    APP_NAME: str = Field(default="Scheduling Engine")

    # Server settings
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./scheduling.db")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)

    # Redis settings (only used when BOOKING_LOCK_BACKEND=redis)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_MAX_CONNECTIONS: int = Field(default=50)

    # Scheduling settings
    SLOT_PROBE_INTERVAL_MINUTES: int = Field(default=15, gt=0)
    MAX_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    MAX_APPOINTMENT_IMAGES: int = Field(default=2, ge=0)
    BOOKING_LOCK_BACKEND: str = Field(default="local")  # local, redis
    BOOKING_LOCK_TIMEOUT_SECONDS: int = Field(default=10, gt=0)

    # Defaults applied when a business opens a new weekday or adds a break
    DEFAULT_OPEN_TIME: str = Field(default="09:00")
    DEFAULT_CLOSE_TIME: str = Field(default="18:00")
    DEFAULT_BREAK_START: str = Field(default="13:00")
    DEFAULT_BREAK_END: str = Field(default="13:30")
    DEFAULT_CLOSURE_REASON: str = Field(default="Vacation")

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # allows extra env vars without breaking
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Convenience accessor for settings
settings = get_settings()
