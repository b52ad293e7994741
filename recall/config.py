"""
Configuration settings for recall-core.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RECALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Platform API
    # ========================================
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the learning platform API",
    )
    api_key: str | None = Field(
        default=None,
        description="API key sent as X-API-Key",
    )
    auth_token: str | None = Field(
        default=None,
        description="Bearer token for the learner session",
    )
    user_id: str | None = Field(
        default=None,
        description="Learner id sent with review-state reads and writes",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP request timeout",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per request before giving up (timeouts, 5xx)",
    )

    # ========================================
    # Review-state store
    # ========================================
    store_backend: Literal["http", "sql"] = Field(
        default="http",
        description="Where review state is read from and written to",
    )
    database_url: str = Field(
        default="sqlite:///recall.db",
        description="SQLAlchemy URL for the offline review-state store",
    )

    # ========================================
    # Scheduling
    # ========================================
    default_seconds_to_complete: int = Field(
        default=3600,
        description="Time remaining assumed when a course has no target (1 hour)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="loguru level for the CLI stderr sink",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
