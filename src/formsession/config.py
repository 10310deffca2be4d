"""Session settings using Pydantic Settings.

Every value can be overridden through a ``FORMSESSION_`` prefixed
environment variable, e.g. ``FORMSESSION_API_BASE_URL``.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the form session engine."""

    model_config = SettingsConfigDict(
        env_prefix="FORMSESSION_",
        extra="ignore",
    )

    api_base_url: str = Field(default="http://localhost:3000", description="Backend base URL")
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="HTTP connect timeout in seconds")

    storage_dir: Path = Field(
        default=Path.home() / ".formsession",
        description="Directory holding local progress snapshots",
    )
    snapshot_max_age_hours: float = Field(default=24.0, description="Snapshot freshness window")

    save_indicator_ms: int = Field(default=250, description="Minimum visible 'saving' duration")
    max_comment_length: int = Field(default=500, description="Maximum comment length")

    log_level: str = Field(default="INFO", description="Root log level for scripts")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = None) -> None:
    """Configure root logging for scripts and demos."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
