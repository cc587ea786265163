"""Centralized settings management for the city events pipeline."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings powered by pydantic-settings.

    Loads configuration from environment variables and a .env file located
    at the repository root. Every feed URL is optional: an unset feed is
    simply not fetched.
    """

    # -------------------------------------------------------------------------
    # ENVIRONMENT
    # -------------------------------------------------------------------------
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------------------------------
    # FEEDS (delimited text with a header row)
    # -------------------------------------------------------------------------
    EVENTS_CSV_URL: str | None = None
    VENUES_CSV_URL: str | None = None
    EVENT_TAGS_CSV_URL: str | None = None
    VENUE_TAGS_CSV_URL: str | None = None
    COLLECTIONS_CSV_URL: str | None = None
    COLLECTION_ITEMS_CSV_URL: str | None = None
    PROMOTERS_CSV_URL: str | None = None

    # -------------------------------------------------------------------------
    # PIPELINE
    # -------------------------------------------------------------------------
    DEFAULT_TIMEZONE: str = "Europe/Lisbon"
    VENUE_CAP: int = Field(default=15, ge=1)
    REQUEST_TIMEOUT: float = Field(default=30.0, gt=0)

    # -------------------------------------------------------------------------
    # PATHS
    # -------------------------------------------------------------------------
    # BASE_DIR points to the citycal package
    BASE_DIR: Path = Path(__file__).resolve().parents[1]

    CANONICAL_VENUES_PATH: Path = BASE_DIR / "assets" / "canonical_venues.json"
    INGESTION_CONFIG_PATH: Path = BASE_DIR / "configs" / "ingestion.yaml"

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        # Look for .env at the repository root
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        # Allow extra fields in .env but ignore them in the model
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns
    -------
    Settings
        The singleton settings instance.
    """
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for scripts, using LOG_LEVEL when no level is given."""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
