"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production may inject everything via env vars only
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Gateway behaviour: rate limiting and search."""

    rate_limit_backend: Literal["sql", "memory"] = Field(
        "sql",
        description="Where rate-limit counters live: 'sql' (shared table) or 'memory' (per process)",
    )
    rate_limit_max_requests: int = Field(
        10,
        description="Update requests allowed per client identity within one window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Fixed window length in seconds, anchored at the first request",
        ge=1,
    )
    search_page_size: int = Field(
        30,
        description="Number of packages per search results page",
        ge=1,
    )
    search_path: str = Field(
        "/search",
        description="Path the update endpoint redirects to after dispatching",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational storage for the package and rate-limit tables."""

    url: str = Field(
        "sqlite:///./packages.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(
        False,
        description="Log every SQL statement (debugging only)",
    )
    create_tables: bool = Field(
        True,
        description="Create missing tables on application startup",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        case_sensitive=False,
    )


class UpdaterSettings(BaseSettings):
    """External metadata refresh operation.

    When no webhook URL is configured the gateway only logs the refresh.
    """

    webhook_url: str | None = Field(
        None,
        description="Endpoint receiving POST {'name': <package>} to refresh a package",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Timeout for a single refresh call",
    )

    model_config = SettingsConfigDict(
        env_prefix="UPDATER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="'json' for structured logs, 'plain' for human-readable lines",
    )
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    updater: UpdaterSettings = Field(default_factory=UpdaterSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
