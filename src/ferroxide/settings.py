"""Environment-backed settings for Ferroxide."""
from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_brand: str = "Ferroxide"
    dev_mode: bool = False

    log_filter: str = "info"
    # Checked by the logger so an unknown style falls back to "auto" with a warning.
    log_style: str = "auto"
    ferroxide_home: str | None = None
    timezone: str = "Europe/Warsaw"

    host: str = "0.0.0.0"
    # Parsed by the CLI so an invalid value falls back instead of failing validation.
    port: str | None = None

    @field_validator("log_style", mode="before")
    @classmethod
    def _normalise_style(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of application settings."""

    return AppSettings()
