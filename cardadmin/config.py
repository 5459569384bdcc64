"""
Configuration and settings for the card admin service.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SESSION_SECRET = "demodi-card-manager-secret"
SESSION_TTL_SECONDS = 8 * 60 * 60


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Shared admin password checked at login. Login fails closed without it.
    form_password: Optional[str] = Field(default=None)

    # Session cookie
    session_secret: str = Field(default=DEV_SESSION_SECRET)
    session_cookie_name: str = Field(default="DEMODI_ADMIN")
    session_ttl_seconds: int = Field(default=SESSION_TTL_SECONDS, gt=0)
    session_cookie_secure: bool = Field(default=False)

    # Database (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="CARDADMIN_USE_IN_MEMORY_BACKENDS"
    )


@dataclass(frozen=True)
class StorageConfig:
    """Which card store to build. Decided once at startup."""

    database_url: Optional[str] = None

    @property
    def use_database(self) -> bool:
        return bool(self.database_url)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        if settings.use_in_memory_backends:
            return cls()
        return cls(database_url=settings.database_url or None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
