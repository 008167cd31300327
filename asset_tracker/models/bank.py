"""
Bank Link Models

The bank connection is simulated: nothing is sent to a bank. What we
keep is which bank the user picked and the last four digits of the card
they entered, so the account page can show "CIB - card ending 4242".

CRITICAL: The full card number and CVV are never persisted.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from asset_tracker.models.validation import ValidationResult


class SupportedBank(str, Enum):
    """Banks offered on the connection screen."""
    CIB = "CIB"
    NBE = "NBE"
    BANQUE_MISR = "Banque Misr"
    QNB = "QNB"
    BANQUE_DU_CAIRE = "Banque du Caire"


class CardDetails(BaseModel):
    """
    Card details as entered by the user.

    Only normalized here (whitespace removed from the card number);
    format checks are done by BankLinkValidator so every problem can be
    reported at once.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    card_number: str
    expiry_date: str
    cvv: str

    @field_validator('card_number')
    @classmethod
    def remove_whitespace(cls, v: str) -> str:
        return "".join(v.split())

    @property
    def last_four(self) -> str:
        return self.card_number[-4:]


class LinkedAccount(BaseModel):
    """The bank account a user has connected."""

    username: str = Field(
        ...,
        min_length=1,
        description="Owner of the link"
    )
    bank: SupportedBank
    card_last_four: str = Field(
        ...,
        pattern=r"^\d{4}$",
        description="Last four digits of the linked card"
    )
    linked_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    def display(self) -> str:
        return f"{self.bank.value} - card ending {self.card_last_four}"


class BankConnectionResult(BaseModel):
    """Outcome of an attempt to link a bank account."""

    validation: ValidationResult
    account: Optional[LinkedAccount] = None

    @property
    def connected(self) -> bool:
        return self.account is not None


class AccountOverview(BaseModel):
    """What the bank account page shows: the link and the portfolio total."""

    username: str
    account: Optional[LinkedAccount] = None
    asset_count: int = Field(default=0, ge=0)
    total_assets: Decimal = Decimal("0")

    @property
    def connected(self) -> bool:
        return self.account is not None
