"""
Configuration Management for Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which remote collaborators the ledger talks to
and ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Remote Ledger API / Identity API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the JSON API serving records and identities"
    )
    records_path: str = Field(
        default="/records",
        description="Collection path for ledger records"
    )
    identities_path: str = Field(
        default="/identities",
        description="Collection path for identities"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Total timeout for a single remote call"
    )
    backend: Literal["http", "memory"] = Field(
        default="http",
        description="'http' talks to the remote API, 'memory' keeps everything in process"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined with a leading slash, so drop the trailing one."""
        return v.rstrip("/")


class SessionSettings(BaseSettings):
    """Session lifecycle configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ttl_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Sliding expiration window; renewal runs every ttl/2"
    )
    durable_path: Path = Field(
        default=Path(".expense_ledger/session.json"),
        description="Where the durable session record is kept between restarts"
    )
    cookie_name: str = Field(
        default="ledger_token",
        min_length=1,
        description="Name of the short-lived token mirror"
    )

    # Administrative sentinel pair (no remote lookup)
    admin_login: str = Field(
        default="admin",
        description="Login that short-circuits to the administrator identity"
    )
    admin_password: str = Field(
        default="1234",
        description="Password paired with admin_login"
    )

    @field_validator("durable_path", mode="before")
    @classmethod
    def expand_path(cls, v) -> Path:
        """Expand user directories in the configured path."""
        return Path(v).expanduser()


class LedgerSettings(BaseSettings):
    """Ledger presentation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    page_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Records per page in the monthly list"
    )
    currency_symbol: str = Field(
        default="R$",
        description="Prefix used when formatting amounts"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "session", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
