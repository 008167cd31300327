"""Portfolio query package."""

from asset_tracker.queries.portfolio import (
    CategoryTotal,
    PortfolioSummary,
    filter_by_category,
    summarize,
    total_value,
)

__all__ = [
    "CategoryTotal",
    "PortfolioSummary",
    "filter_by_category",
    "summarize",
    "total_value",
]
