"""Configuration package."""

from asset_tracker.config.settings import (
    AppSettings,
    Settings,
    ZakatSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "ZakatSettings",
    "get_settings",
    "validate_all_settings",
]
