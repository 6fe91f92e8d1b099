"""
Configuration Management for Cash Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external services the ledger talks to and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirebaseSettings(BaseSettings):
    """Firebase Auth + Firestore configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    web_api_key: str = Field(
        ...,
        description="Web API key used by the Identity Toolkit REST endpoints"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to the service account JSON (Firestore access)"
    )
    project_id: Optional[str] = Field(
        default=None,
        description="Firebase project ID (read from credentials if omitted)"
    )
    auth_request_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=120,
        description="Per-request timeout for Identity Toolkit calls"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Firebase credentials file not found at {v}. "
                "Make sure it exists before using the Firestore store."
            )
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

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
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Backends
    identity_backend: Literal["firebase", "memory"] = Field(
        default="firebase",
        description="Which identity provider to use"
    )
    store_backend: Literal["firestore", "google_sheets", "memory"] = Field(
        default="firestore",
        description="Which document store to use"
    )

    # Collection names
    users_collection: str = Field(
        default="users",
        min_length=1,
        description="Collection holding user profile documents"
    )
    transactions_collection: str = Field(
        default="transactions",
        min_length=1,
        description="Collection holding transaction documents"
    )
    audit_collection: str = Field(
        default="audit_events",
        min_length=1,
        description="Collection holding persisted audit events"
    )
    persist_audit_events: bool = Field(
        default=False,
        description="Also write audit events to the document store"
    )

    # Presentation
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting amounts"
    )

    # Validation limits
    max_description_length: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Longest description accepted for a transaction"
    )
    max_amount: Decimal = Field(
        default=Decimal("1000000000000"),
        gt=0,
        description="Largest amount accepted for a single transaction"
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

    # Note: These are loaded lazily to allow partial configuration
    # (e.g. the memory backends need no Firebase credentials at all).

    @property
    def firebase(self) -> FirebaseSettings:
        return FirebaseSettings()

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

    Returns a dict of {setting_name: is_valid}, plus a
    "<setting_name>_error" entry for every section that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("firebase", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
