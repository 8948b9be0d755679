"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def _default_data_dir() -> Path:
    data_dir_env = os.environ.get("ANIMAP_DATA_DIR")
    if data_dir_env:
        return Path(data_dir_env)
    # __file__ is backend/animap/core/config.py, so go up to backend/ and add data
    return (Path(__file__).parent.parent.parent / "data").resolve()


def json_config_settings_source(
    settings: BaseSettings | None = None,
) -> dict[str, Any]:  # noqa: ANN001
    """Load settings from settings.json file.

    This source has lowest priority - env vars will override JSON values.
    The ``matching`` section holds per-catalog profiles and is read by
    animap.core.matching.config instead, so it is skipped here.

    Returns:
        Dictionary with setting keys (lowercase) and values from JSON file.
    """
    settings_file = _default_data_dir() / "config" / "settings.json"
    if not settings_file.exists():
        return {}

    try:
        with settings_file.open("r") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}

    if not isinstance(data, dict):
        return {}
    return {key.lower(): value for key, value in data.items() if key != "matching"}


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from:
    1. JSON file (settings.json in config directory) - lowest priority
    2. .env file
    3. Environment variables - highest priority (override JSON/.env)

    All settings are prefixed with ANIMAP_ (e.g., ANIMAP_LOG_LEVEL=DEBUG).

    See: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ANIMAP_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources - earlier sources take precedence.

        Priority (highest to lowest):
        1. Init settings (values passed to Settings())
        2. Environment variables
        3. .env file
        4. JSON file (settings.json)
        """
        return (  # type: ignore[return-value]
            init_settings,
            env_settings,
            dotenv_settings,
            json_config_settings_source,
        )

    # Application
    env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Application environment (development, production, testing)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    file_logging: bool = Field(
        default=False,
        description="Write JSON logs to files under logs_dir instead of stdout",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Base directory for application data (config, logs)",
    )

    # Resolution cache
    resolution_cache_ttl: int = Field(
        default=600,
        ge=0,
        description="Seconds a resolved match stays cached (0 disables caching)",
    )
    resolution_cache_max_entries: int = Field(
        default=2048,
        ge=1,
        description="Maximum number of cached resolutions before the oldest are evicted",
    )

    # AniList
    anilist_url: str = Field(
        default="https://graphql.anilist.co",
        description="AniList GraphQL endpoint",
    )
    anilist_search_limit: int = Field(
        default=20,
        ge=1,
        le=50,
        description="Results per AniList search page",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout in seconds for catalog clients",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries on rate limits, server errors and network errors",
    )

    @property
    def config_dir(self) -> Path:
        """Directory for configuration files (settings.json, etc.)."""
        return self.data_dir / "config"

    @property
    def logs_dir(self) -> Path:
        """Directory for log files (if file logging is enabled)."""
        return self.data_dir / "logs"

    @property
    def is_debug(self) -> bool:
        """Check if running in debug/development mode."""
        return self.env == "development" or self.log_level == "DEBUG"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance.

    Creates and caches the settings instance on first call.
    Subsequent calls return the cached instance.

    Returns:
        Settings instance
    """
    return Settings()


def reload_settings() -> Settings:
    """Reload settings from all sources (JSON, .env, env vars).

    Clears the cache and creates a new Settings instance.

    Returns:
        New Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
