"""
Portfolio Queries

DESIGN DECISION: Totals are computed from the assets actually stored,
never estimated. Categories are grouped by the stored type text, so
free-text categories get their own bucket.
"""

from decimal import Decimal
from typing import Iterable, Union

from pydantic import BaseModel, Field

from asset_tracker.models.asset import Asset, AssetCategory


class CategoryTotal(BaseModel):
    """Count and value of the assets in one category."""

    category: str
    count: int = Field(default=0, ge=0)
    total_value: Decimal = Decimal("0")


class PortfolioSummary(BaseModel):
    """Totals over a user's assets."""

    asset_count: int = Field(default=0, ge=0)
    total_value: Decimal = Decimal("0")
    by_category: dict[str, CategoryTotal] = Field(default_factory=dict)

    def share_of(self, category: Union[AssetCategory, str]) -> Decimal:
        """Fraction of the total value held in ``category`` (0 for an empty portfolio)."""
        key = category.value if isinstance(category, AssetCategory) else category
        bucket = self.by_category.get(key)
        if bucket is None or not self.total_value:
            return Decimal("0")
        return bucket.total_value / self.total_value


def total_value(assets: Iterable[Asset]) -> Decimal:
    """Sum of all asset values."""
    return sum((asset.value for asset in assets), Decimal("0"))


def filter_by_category(
    assets: Iterable[Asset],
    category: Union[AssetCategory, str],
) -> list[Asset]:
    """Assets whose type matches ``category`` (case-insensitive)."""
    key = category.value if isinstance(category, AssetCategory) else category
    key = key.strip().lower()
    return [asset for asset in assets if asset.type.strip().lower() == key]


def summarize(assets: Iterable[Asset]) -> PortfolioSummary:
    """Count and total the assets, overall and per category."""
    summary = PortfolioSummary()
    for asset in assets:
        bucket = summary.by_category.setdefault(
            asset.type,
            CategoryTotal(category=asset.type),
        )
        bucket.count += 1
        bucket.total_value += asset.value
        summary.asset_count += 1
        summary.total_value += asset.value
    return summary
