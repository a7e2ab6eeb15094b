"""
Configuration Management for Expense Assistant

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelegramSettings(BaseSettings):
    """Telegram bot transport configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    token: str = Field(
        ...,
        min_length=1,
        description="Telegram bot token issued by BotFather"
    )
    drop_pending_updates: bool = Field(
        default=False,
        description="Discard updates that arrived while the bot was offline"
    )


class AccessSettings(BaseSettings):
    """Shared access code configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    code: str = Field(
        ...,
        min_length=1,
        description="Secret code a chat identity must send to unlock the bot"
    )


class ServerSettings(BaseSettings):
    """Liveness endpoint configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port for the liveness endpoint"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Interface the liveness endpoint binds to"
    )


class ReportSettings(BaseSettings):
    """Scheduled digest configuration (standard 5-field cron expressions)."""

    model_config = SettingsConfigDict(
        env_prefix="REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    daily_schedule: str = Field(
        default="0 21 * * *",
        description="When the daily report is sent"
    )
    weekly_schedule: str = Field(
        default="0 21 * * sun",
        description="When the weekly audit is sent"
    )
    # Evaluated on the last days of every month; the job itself checks
    # that tomorrow starts a new month before sending.
    monthly_schedule: str = Field(
        default="0 21 28-31 * *",
        description="When the month-end check runs"
    )
    weekly_entry_count: int = Field(
        default=30,
        ge=1,
        description="How many of the most recent entries the weekly audit covers"
    )

    @field_validator('daily_schedule', 'weekly_schedule', 'monthly_schedule')
    @classmethod
    def validate_cron(cls, v: str) -> str:
        """Cron expressions must have exactly five fields."""
        if len(v.split()) != 5:
            raise ValueError(f"Invalid cron expression: {v!r}")
        return v


class StorageSettings(BaseSettings):
    """Ledger storage backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "google_sheets"] = Field(
        default="json",
        description="Which ledger store to use"
    )
    json_path: str = Field(
        default="expenses.json",
        description="Path of the JSON ledger file (json backend)"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    ledger_sheet_name: str = Field(
        default="Ledgers",
        description="Name of the sheet holding one row per user ledger"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # All calendar days and months are computed in this zone
    timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone used to stamp entries and fire reports"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Symbol prefixed to amounts in replies"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names at startup."""
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


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

    # Load all sub-settings
    # Note: These are loaded lazily to allow partial configuration

    @property
    def telegram(self) -> TelegramSettings:
        return TelegramSettings()

    @property
    def access(self) -> AccessSettings:
        return AccessSettings()

    @property
    def server(self) -> ServerSettings:
        return ServerSettings()

    @property
    def reports(self) -> ReportSettings:
        return ReportSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Google Sheets is only checked when it is the selected backend.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = ["telegram", "access", "server", "reports", "storage", "app"]
    try:
        if settings.storage.backend == "google_sheets":
            sections.append("google_sheets")
    except Exception:
        pass  # reported under "storage" below

    for name in sections:
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
