"""Configuration package."""

from expense_ledger.config.settings import (
    AppSettings,
    DatabaseSettings,
    JwtSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "JwtSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
