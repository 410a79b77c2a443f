"""
Configuration Management for Asset Ledger

Settings are read from environment variables (and `.env`) with
pydantic-settings. Storage paths and store behaviour live here and
nowhere else, so every file the ledger writes is visible in one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the ledger document and the audit trail are written."""

    model_config = SettingsConfigDict(
        env_prefix="ASSET_LEDGER_STORAGE_",
        extra="ignore"
    )

    data_file: Path = Field(
        default=Path("./data/assets.json"),
        description="Path to the JSON document holding assets and sources"
    )
    audit_file: Optional[Path] = Field(
        default=None,
        description="Path to a JSON-lines audit log (disabled when unset)"
    )
    indent: Optional[int] = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation of the JSON document (None for compact)"
    )

    @field_validator('data_file')
    @classmethod
    def validate_data_file(cls, v: Path) -> Path:
        """The data file must name a file, not an existing directory."""
        if v.exists() and v.is_dir():
            raise ValueError(f"Data file path is a directory: {v}")
        return v


class AppSettings(BaseSettings):
    """
    Process-wide behaviour: logging and how an empty ledger starts.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Environment name attached to startup logs"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the stdlib root logger"
    )

    # Store behaviour
    seed_sample_assets: bool = Field(
        default=False,
        description="Seed sample assets when the store loads empty"
    )
    recent_activity_limit: int = Field(
        default=4,
        ge=1,
        le=100,
        description="Number of records shown as recent activity"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


class Settings(BaseSettings):
    """
    Entry point for configuration.

    Sections are built on access, so a bad value in one section does not
    stop another from loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings instance.

    Cached; tests call `get_settings.cache_clear()` after changing the
    environment.
    """
    return Settings()


def validate_all_settings() -> dict:
    """
    Build every section once and report which ones fail.

    Returns:
        `{section: ok}` plus a `<section>_error` message per failure
    """
    results: dict = {}
    settings = get_settings()

    for section in ("storage", "app"):
        try:
            getattr(settings, section)
        except ValidationError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)
        else:
            results[section] = True

    return results
