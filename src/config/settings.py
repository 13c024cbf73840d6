"""
Configuration Management for Expense Tracker

Every tunable of the tracker is read here with pydantic-settings, from
environment variables and an optional .env file.

DESIGN DECISION: The Google Sheets block is loaded separately from the
app block, so the tracker still starts (on the in-memory store) when
no spreadsheet is configured.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file used to reach the spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Key of the spreadsheet holding the ledger"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet holding transaction documents"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Worksheet receiving audit events"
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
    Tracker behaviour: display, import/export and validation thresholds.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Human-readable console logs instead of JSON lines"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        description="Symbol shown in front of amounts (not part of the data)"
    )

    # Import / export
    export_filename_prefix: str = Field(
        default="expense-tracker",
        description="Prefix for exported file names"
    )
    csv_export_decimals: Optional[int] = Field(
        default=None,
        ge=0,
        le=10,
        description="Fixed decimal places for CSV amounts (None = plain number text)"
    )
    sanitize_json_imports: bool = Field(
        default=True,
        description="Apply the CSV text sanitization to JSON imports as well"
    )
    snapshot_cache_path: Optional[str] = Field(
        default=None,
        description="File used to cache the last-seen transaction snapshot"
    )

    # Validation thresholds
    max_reasonable_amount: float = Field(
        default=10000000.0,
        gt=0,
        description="Amounts above this are flagged for review (never rejected)"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase level names."""
        return v.strip().upper()


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

    # Sub-settings are loaded lazily to allow partial configuration

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

    Loaded once per process.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings block.

    Returns {block_name: loaded_ok}, plus an "<block>_error" entry holding
    the message for each block that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
