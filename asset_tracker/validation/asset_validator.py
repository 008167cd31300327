"""
Asset Input Validation

Checks what the user typed into the add/edit asset form before anything
reaches the store:
- every field filled in
- the value is a number and not negative
- the category is one we know (warning only)
- the purchase date looks like YYYY-MM-DD and is not in the future
  (warnings only; the date is stored as typed)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them to the user.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from asset_tracker.models.asset import AssetCategory
from asset_tracker.models.validation import (
    AssetInputResult,
    ValidationIssue,
    ValidationResult,
)


DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class AssetInputValidator:
    """Validates raw asset form input."""

    def __init__(self, today: Optional[date] = None):
        """
        Args:
            today: Reference date for the future-date check (defaults to
                   the current date at validation time).
        """
        self._today = today

    def _check_required(
        self,
        fields: dict[str, str],
    ) -> list[ValidationIssue]:
        issues = []
        for field_name, text in fields.items():
            if not text.strip():
                label = field_name.replace("_", " ")
                issues.append(ValidationIssue(
                    field=field_name,
                    issue_type="missing",
                    message=f"Please fill in the {label}",
                    severity="error",
                ))
        return issues

    def _parse_value(
        self,
        value_text: str,
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        try:
            value = Decimal(value_text.strip())
        except InvalidOperation:
            return None, [ValidationIssue(
                field="value",
                issue_type="invalid_format",
                message="Please enter a valid number for value",
                severity="error",
                suggested_fix="Use digits with an optional decimal point, e.g. 1500.50",
            )]

        if not value.is_finite():
            return None, [ValidationIssue(
                field="value",
                issue_type="invalid_format",
                message="Please enter a valid number for value",
                severity="error",
            )]

        if value < 0:
            return None, [ValidationIssue(
                field="value",
                issue_type="negative_value",
                message="Value cannot be negative",
                severity="error",
            )]

        return value, []

    def _check_single_line(
        self,
        fields: dict[str, str],
    ) -> list[ValidationIssue]:
        return [
            ValidationIssue(
                field=field_name,
                issue_type="invalid_format",
                message=f"The {field_name.replace('_', ' ')} must be on a single line",
                severity="error",
            )
            for field_name, text in fields.items()
            if "\n" in text or "\r" in text
        ]

    def _check_category(self, asset_type: str) -> list[ValidationIssue]:
        known = [category.value for category in AssetCategory]
        if asset_type.strip() in known:
            return []
        return [ValidationIssue(
            field="type",
            issue_type="unknown_category",
            message=f"'{asset_type.strip()}' is not one of the usual categories",
            severity="warning",
            suggested_fix=f"Pick one of: {', '.join(known)}",
        )]

    def _check_date(self, purchase_date: str) -> list[ValidationIssue]:
        text = purchase_date.strip()
        try:
            if not DATE_PATTERN.fullmatch(text):
                raise ValueError(text)
            parsed = datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            return [ValidationIssue(
                field="purchase_date",
                issue_type="invalid_format",
                message="Purchase date is not in YYYY-MM-DD format",
                severity="warning",
                suggested_fix="Enter the date as YYYY-MM-DD, e.g. 2024-01-31",
            )]

        today = self._today or date.today()
        if parsed > today:
            return [ValidationIssue(
                field="purchase_date",
                issue_type="future_date",
                message=f"Purchase date {parsed.isoformat()} is in the future",
                severity="warning",
                suggested_fix="Please check the year",
            )]
        return []

    def validate(
        self,
        asset_type: str,
        name: str,
        value_text: Union[str, Decimal, float],
        purchase_date: str,
    ) -> AssetInputResult:
        """
        Validate one submission of the asset form.

        Returns:
            AssetInputResult with all issues found and, when the value
            could be read, the parsed value
        """
        value_text = str(value_text)
        text_fields = {
            "type": asset_type,
            "name": name,
            "purchase_date": purchase_date,
        }

        issues = self._check_required({**text_fields, "value": value_text})
        issues.extend(self._check_single_line(text_fields))

        value = None
        if value_text.strip():
            value, value_issues = self._parse_value(value_text)
            issues.extend(value_issues)

        if asset_type.strip():
            issues.extend(self._check_category(asset_type))
        if purchase_date.strip():
            issues.extend(self._check_date(purchase_date))

        return AssetInputResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
            value=value,
        )


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Render a validation result as text for the form.
    """
    if result.is_valid and not result.warnings:
        return "All checks passed."

    lines = []

    if result.has_errors:
        lines.append("Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
