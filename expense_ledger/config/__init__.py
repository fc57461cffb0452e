"""Configuration package."""

from expense_ledger.config.settings import (
    ApiSettings,
    AppSettings,
    LedgerSettings,
    SessionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "LedgerSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
