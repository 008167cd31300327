"""Input validation package."""

from asset_tracker.validation.asset_validator import (
    AssetInputValidator,
    get_user_friendly_summary,
)
from asset_tracker.validation.bank_validator import BankLinkValidator

__all__ = [
    "AssetInputValidator",
    "BankLinkValidator",
    "get_user_friendly_summary",
]
