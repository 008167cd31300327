"""
Zakat Calculator

Zakat is the yearly charity owed on wealth: a fixed share (2.5% by
default) of the value of the assets held. When a nisab threshold is
configured, nothing is due while total wealth stays below it.

All arithmetic is done on Decimals and rounded half-up to cents.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from asset_tracker.config import get_settings
from asset_tracker.models.asset import Asset
from asset_tracker.models.zakat import ZakatAssessment, ZakatLine
from asset_tracker.queries import total_value


CENTS = Decimal("0.01")


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class ZakatCalculator:
    """Computes the Zakat due on single assets and whole portfolios."""

    def __init__(
        self,
        rate: Optional[Decimal] = None,
        nisab_threshold: Optional[Decimal] = None,
    ):
        settings = get_settings().zakat
        self.rate = Decimal(str(rate)) if rate is not None else settings.rate
        if not Decimal("0") <= self.rate <= Decimal("1"):
            raise ValueError(f"Zakat rate must be between 0 and 1, got {self.rate}")

        threshold = nisab_threshold if nisab_threshold is not None else settings.nisab_threshold
        threshold = Decimal(str(threshold))
        # 0 disables the nisab check
        self.nisab_threshold = threshold if threshold > 0 else None

    def zakat_on(self, amount: Decimal) -> Decimal:
        """Zakat on a bare amount."""
        return _round(Decimal(str(amount)) * self.rate)

    def zakat_for(self, asset: Asset) -> Decimal:
        """Zakat on one asset, ignoring the nisab."""
        return self.zakat_on(asset.value)

    def assess(self, assets: Iterable[Asset]) -> ZakatAssessment:
        """Zakat over a portfolio, per asset and per category."""
        assets = list(assets)
        portfolio_value = total_value(assets)
        above_nisab = self.nisab_threshold is None or portfolio_value >= self.nisab_threshold

        lines = [
            ZakatLine(
                asset_id=asset.id,
                asset_type=asset.type,
                name=asset.name,
                value=asset.value,
                zakat=self.zakat_for(asset),
            )
            for asset in assets
        ]

        by_category: dict[str, Decimal] = {}
        if above_nisab:
            for asset in assets:
                by_category[asset.type] = (
                    by_category.get(asset.type, Decimal("0")) + asset.value
                )
            by_category = {
                category: self.zakat_on(value)
                for category, value in by_category.items()
            }

        return ZakatAssessment(
            rate=self.rate,
            total_value=portfolio_value,
            total_zakat=self.zakat_on(portfolio_value) if above_nisab else Decimal("0.00"),
            nisab_threshold=self.nisab_threshold,
            above_nisab=above_nisab,
            zakat_by_category=by_category,
            lines=lines,
        )
