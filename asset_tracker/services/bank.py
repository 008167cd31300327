"""
Bank Connection Service

Links a user's bank account in the simulated "connect your bank" flow:
the card details and one-time password are format checked, and on
success the bank and the last four card digits are remembered for the
user. No bank is ever contacted.
"""

from typing import Callable, Optional, Union

from asset_tracker.audit import AuditLogger
from asset_tracker.models.bank import (
    AccountOverview,
    BankConnectionResult,
    CardDetails,
    LinkedAccount,
    SupportedBank,
)
from asset_tracker.models.validation import ValidationResult
from asset_tracker.queries import total_value
from asset_tracker.services.storage import (
    AssetStorageInterface,
    BankAccountRegistry,
    FlatFileAssetStore,
    StorageError,
    StorageReadError,
    validate_username,
)
from asset_tracker.validation import BankLinkValidator


class BankConnectionService:
    """Connects, disconnects and reports on a user's linked bank account."""

    def __init__(
        self,
        registry: BankAccountRegistry,
        validator: Optional[BankLinkValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        store_factory: Optional[Callable[[str], AssetStorageInterface]] = None,
    ):
        """
        Args:
            registry: Where linked accounts are remembered.
            validator: Card/OTP validator (BankLinkValidator by default).
            audit_logger: Audit trail; local-only logging when None.
            store_factory: Opens a user's asset store, used for the
                           total asset value on the overview.
        """
        self._registry = registry
        self._validator = validator or BankLinkValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._store_factory = store_factory or FlatFileAssetStore.open

    def connect(
        self,
        username: str,
        bank: Union[SupportedBank, str],
        card_number: str,
        expiry_date: str,
        cvv: str,
        otp: str,
    ) -> BankConnectionResult:
        """
        Validate the card details and OTP, then link the account.

        An existing link for the user is replaced.
        """
        validate_username(username)

        card_check = self._validator.validate_card(bank, card_number, expiry_date, cvv)
        otp_check = self._validator.validate_otp(otp)
        validation = ValidationResult.from_issues(card_check.issues + otp_check.issues)

        if not validation.is_valid:
            self._audit_logger.log_bank_link_rejected(
                username=username,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in validation.issues
                ],
            )
            return BankConnectionResult(validation=validation)

        card = CardDetails(card_number=card_number, expiry_date=expiry_date, cvv=cvv)
        account = LinkedAccount(
            username=username,
            bank=SupportedBank(bank),
            card_last_four=card.last_four,
        )
        try:
            self._registry.link(account)
        except StorageError as e:
            self._log_registry_error(username, e)
            raise

        self._audit_logger.log_bank_linked(
            username=username,
            bank=account.bank.value,
            card_last_four=account.card_last_four,
        )
        return BankConnectionResult(validation=validation, account=account)

    def disconnect(self, username: str) -> bool:
        """Forget the user's link. Returns False if nothing was linked."""
        try:
            removed = self._registry.unlink(username)
        except StorageError as e:
            self._log_registry_error(username, e)
            raise
        if removed:
            self._audit_logger.log_bank_unlinked(username)
        return removed

    def _log_registry_error(self, username: str, error: StorageError) -> None:
        if isinstance(error, StorageReadError):
            error_type = "bank_registry_read_failed"
        else:
            error_type = "bank_registry_write_failed"
        self._audit_logger.log_error(
            error_type=error_type,
            error_message=str(error),
            username=username,
        )

    def get_linked(self, username: str) -> Optional[LinkedAccount]:
        return self._registry.get(username)

    def overview(self, username: str) -> AccountOverview:
        """The linked account (if any) together with the user's total asset value."""
        assets = self._store_factory(username).list()
        return AccountOverview(
            username=username,
            account=self._registry.get(username),
            asset_count=len(assets),
            total_assets=total_value(assets),
        )
