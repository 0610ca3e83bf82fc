"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment variables.

    Allocation parameters (ID length, charset, admin secret) are not here:
    they live in the storage file's ``settings`` table and are loaded once
    at startup by the settings store.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "IdRegistry"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    # Database
    database_path: str | None = None
    database_pool_size: int = 10
    database_max_overflow: int = 0
    database_pool_timeout_seconds: float = 5.0
    database_echo: bool = False
    sqlite_journal_mode: str = "WAL"

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_database_path(cls, value: object) -> object:
        """Treat blank paths as missing."""
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        return cleaned or None

    @field_validator("sqlite_journal_mode")
    @classmethod
    def _normalize_journal_mode(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if cleaned not in {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}:
            raise ValueError(f"Unsupported SQLite journal mode: {value}")
        return cleaned

    @property
    def database_url(self) -> str | None:
        """Async SQLAlchemy URL for the configured storage file."""
        if not self.database_path:
            return None
        return build_database_url(self.database_path)


def build_database_url(database_path: str) -> str:
    """Return the aiosqlite URL for a storage file path."""
    return f"sqlite+aiosqlite:///{Path(database_path).expanduser()}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    return settings


settings = get_settings()
