"""Configuration package."""

from expense_assistant.config.settings import (
    AccessSettings,
    AppSettings,
    GoogleSheetsSettings,
    ReportSettings,
    ServerSettings,
    Settings,
    StorageSettings,
    TelegramSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AccessSettings",
    "AppSettings",
    "GoogleSheetsSettings",
    "ReportSettings",
    "ServerSettings",
    "Settings",
    "StorageSettings",
    "TelegramSettings",
    "get_settings",
    "validate_all_settings",
]
