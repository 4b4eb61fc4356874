"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


# Endpoint classes with a configurable policy. Order is the order exposed by the API.
POLICY_NAMES: tuple[str, ...] = ("financial", "auth", "messages", "tips", "uploads", "general")


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    service_name: str = Field(
        "request-throttle",
        description="Name reported in logs and API metadata",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting behaviour and the named policy table.

    Each endpoint class has a ``{name}_limit`` / ``{name}_window_seconds`` pair.
    Deployments override them with RATE_LIMIT_* environment variables.
    """

    enabled: bool = Field(
        True,
        description="Enable rate limiting on throttled routes",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    sweep_enabled: bool = Field(
        True,
        description="Run the background sweep of expired entries",
    )
    sweep_interval_seconds: float = Field(
        60.0,
        description="Seconds between sweeps of expired entries",
        gt=0,
    )
    lock_stripes: int = Field(
        64,
        description="Number of locks identifiers are spread across",
        ge=1,
    )

    financial_limit: int = Field(10, ge=1, description="Requests per window for payment endpoints")
    financial_window_seconds: int = Field(60, ge=1)
    auth_limit: int = Field(10, ge=1, description="Requests per window for login/signup endpoints")
    auth_window_seconds: int = Field(60, ge=1)
    messages_limit: int = Field(30, ge=1, description="Requests per window for messaging endpoints")
    messages_window_seconds: int = Field(60, ge=1)
    tips_limit: int = Field(20, ge=1, description="Requests per window for tipping endpoints")
    tips_window_seconds: int = Field(60, ge=1)
    uploads_limit: int = Field(20, ge=1, description="Requests per window for upload endpoints")
    uploads_window_seconds: int = Field(60, ge=1)
    general_limit: int = Field(200, ge=1, description="Requests per window for everything else")
    general_window_seconds: int = Field(60, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, ge=0, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, ge=0)
    request_id_header: str = Field("X-Request-ID", description="Header carrying the correlation id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
