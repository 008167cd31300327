"""
Zakat Models

Results of the Zakat calculation over a user's assets. Amounts are
Decimals rounded to cents.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ZakatLine(BaseModel):
    """Zakat due on a single asset."""

    asset_id: int
    asset_type: str
    name: str
    value: Decimal
    zakat: Decimal


class ZakatAssessment(BaseModel):
    """
    Zakat due over a whole portfolio.

    When a nisab threshold is set and total wealth is below it, nothing
    is due; the per-asset lines still show what each asset would owe.
    """

    rate: Decimal = Field(
        ...,
        description="Rate applied (0.025 = 2.5%)"
    )
    total_value: Decimal = Field(
        default=Decimal("0"),
        description="Sum of all asset values"
    )
    total_zakat: Decimal = Field(
        default=Decimal("0.00"),
        description="Zakat due over the portfolio"
    )
    nisab_threshold: Optional[Decimal] = Field(
        default=None,
        description="Nisab applied, None when the check is disabled"
    )
    above_nisab: bool = True
    zakat_by_category: dict[str, Decimal] = Field(default_factory=dict)
    lines: list[ZakatLine] = Field(default_factory=list)
