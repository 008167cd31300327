"""
Bank Link Validation

Format checks for the simulated bank connection:
- card number: 16 digits (spaces allowed while typing)
- expiry: MM/YY
- CVV: 3 or 4 digits
- OTP: 6 digits

These are format checks only. Nothing is verified with a bank.
"""

import re
from typing import Union

from asset_tracker.models.bank import SupportedBank
from asset_tracker.models.validation import ValidationIssue, ValidationResult


CARD_NUMBER_PATTERN = re.compile(r"[0-9]{16}")
EXPIRY_PATTERN = re.compile(r"(0[1-9]|1[0-2])/[0-9]{2}")
CVV_PATTERN = re.compile(r"[0-9]{3,4}")
OTP_PATTERN = re.compile(r"[0-9]{6}")


class BankLinkValidator:
    """Validates card details and the one-time password."""

    def _check_bank(self, bank: Union[SupportedBank, str]) -> list[ValidationIssue]:
        try:
            SupportedBank(bank)
        except ValueError:
            return [ValidationIssue(
                field="bank",
                issue_type="unsupported_bank",
                message=f"'{bank}' is not a supported bank",
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(b.value for b in SupportedBank)}",
            )]
        return []

    def validate_card(
        self,
        bank: Union[SupportedBank, str],
        card_number: str,
        expiry_date: str,
        cvv: str,
    ) -> ValidationResult:
        """Check every card field and report all problems together."""
        issues = self._check_bank(bank)

        if not CARD_NUMBER_PATTERN.fullmatch("".join(card_number.split())):
            issues.append(ValidationIssue(
                field="card_number",
                issue_type="invalid_format",
                message="Please enter a valid 16-digit card number",
                severity="error",
            ))

        if not EXPIRY_PATTERN.fullmatch(expiry_date.strip()):
            issues.append(ValidationIssue(
                field="expiry_date",
                issue_type="invalid_format",
                message="Please enter expiry date in MM/YY format",
                severity="error",
            ))

        if not CVV_PATTERN.fullmatch(cvv.strip()):
            issues.append(ValidationIssue(
                field="cvv",
                issue_type="invalid_format",
                message="Please enter a valid CVV (3-4 digits)",
                severity="error",
            ))

        return ValidationResult.from_issues(issues)

    def validate_otp(self, otp: str) -> ValidationResult:
        issues = []
        if not OTP_PATTERN.fullmatch(otp.strip()):
            issues.append(ValidationIssue(
                field="otp",
                issue_type="invalid_format",
                message="Please enter a valid 6-digit OTP",
                severity="error",
            ))
        return ValidationResult.from_issues(issues)
