"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
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

DEFAULT_STORE_HOST = "localhost:6379"
DEFAULT_POOL_SIZE = 5

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


class StoreSettings(BaseSettings):
    """Counter store (Redis) connection settings."""

    namespace: str = Field(
        "",
        description="Key prefix isolating this deployment's counters (empty = unscoped)",
    )
    host: str = Field(
        DEFAULT_STORE_HOST,
        description="Redis address as host:port",
    )
    password: str | None = Field(
        None,
        description="Redis AUTH password (omit when the server has none)",
    )
    pool_size: int = Field(
        DEFAULT_POOL_SIZE,
        description="Maximum pooled connections; values <= 0 fall back to the default",
    )
    atomic_expire: bool = Field(
        False,
        description="Run INCR and the first-hit EXPIRE as one server-side script",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )

    @field_validator("pool_size")
    @classmethod
    def _default_non_positive_pool_size(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_POOL_SIZE


class LimiterSettings(BaseSettings):
    """Request limiter definition for the bundled service."""

    enabled: bool = Field(
        True,
        description="Enable request limiting on guarded routes",
    )
    name: str = Field(
        "rps",
        description="Limiter name, part of every counter key",
    )
    interval_seconds: int = Field(
        60,
        description="Fixed window length in seconds",
        ge=1,
    )
    limit: int = Field(
        20,
        description="Maximum number of requests per window and identity",
        ge=1,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on guarded responses",
    )
    trust_proxy_headers: bool = Field(
        True,
        description="Read client identity from X-Real-IP / X-Forwarded-For style headers",
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate log file after this many bytes (0 = never)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    store: StoreSettings = Field(default_factory=StoreSettings)
    limiter: LimiterSettings = Field(default_factory=LimiterSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
