"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    api_base_url: str = "http://127.0.0.1:8000"
    api_prefix: str = "/ai-security/api"
    request_timeout: float = 30.0

    # Authentication (bearer token from the login session)
    access_token: Optional[str] = None
    token_file: Optional[Path] = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @property
    def api_url(self) -> str:
        """Base URL including the API mount point."""
        return self.api_base_url.rstrip("/") + "/" + self.api_prefix.strip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
