"""Client configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # REST backend
    api_url: str = Field(default="http://localhost:8000", validation_alias="BLOG_API_URL")
    api_timeout: float = Field(default=30.0, validation_alias="BLOG_API_TIMEOUT")
    request_source: str = Field(default="blog-client", validation_alias="BLOG_REQUEST_SOURCE")

    # Which auth implementation backs the session ("memory" serves the seeded mock users)
    auth_backend: Literal["rest", "memory"] = Field(
        default="rest", validation_alias="BLOG_AUTH_BACKEND",
    )

    # Durable client storage (token, token timestamp, serialized user)
    storage_path: Path = Field(
        default=Path("~/.blog_client/storage.json"),
        validation_alias="BLOG_STORAGE_PATH",
    )

    # Session lifecycle, in seconds
    session_check_interval: float = Field(
        default=60.0, validation_alias="BLOG_SESSION_CHECK_INTERVAL",
    )
    expiring_soon_threshold: int = Field(
        default=300, validation_alias="BLOG_EXPIRING_SOON_THRESHOLD",
    )

    log_level: str = Field(default="INFO", validation_alias="BLOG_LOG_LEVEL")

    @field_validator("session_check_interval")
    @classmethod
    def check_interval_positive(cls, v: float) -> float:
        """Validate the session check interval is positive."""
        if v <= 0:
            raise ValueError("session_check_interval must be greater than zero")
        return v

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the API URL so paths can be appended with a leading slash."""
        return v.rstrip("/")

    @property
    def resolved_storage_path(self) -> Path:
        """Storage path with the user's home directory expanded."""
        return self.storage_path.expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
