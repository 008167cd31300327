"""
Configuration Management for Asset Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
File locations, naming conventions and the Zakat parameters are read
once and validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZakatSettings(BaseSettings):
    """Zakat calculation parameters."""

    model_config = SettingsConfigDict(
        env_prefix="ZAKAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    rate: Decimal = Field(
        default=Decimal("0.025"),
        ge=0,
        le=1,
        description="Share of zakatable wealth due each year"
    )
    nisab_threshold: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Minimum total wealth before Zakat is due (0 disables the check)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSET_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage layout
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the per-user asset files"
    )
    asset_file_prefix: str = Field(
        default="assets_",
        description="Prefix of a user's asset file name"
    )
    asset_file_suffix: str = Field(
        default=".txt",
        description="Suffix of a user's asset file name"
    )
    bank_accounts_file: str = Field(
        default="bank_accounts.json",
        description="File (inside data_dir) recording linked bank accounts"
    )
    audit_log_file: str = Field(
        default="audit.jsonl",
        description="Audit log file inside data_dir (empty disables it)"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False gives console output)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept the standard logging level names."""
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level

    @field_validator('asset_file_prefix', 'asset_file_suffix')
    @classmethod
    def validate_file_affix(cls, v: str) -> str:
        """File name parts must not escape the data directory."""
        if "/" in v or "\\" in v:
            raise ValueError(f"File name part must not contain a path separator: {v!r}")
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

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def zakat(self) -> ZakatSettings:
        return ZakatSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus {setting_name}_error
    entries describing what went wrong. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("app", "zakat"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
