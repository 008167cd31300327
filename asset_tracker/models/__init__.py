"""
Data Models Package

This package contains all Pydantic models used in Asset Tracker.
All data flowing through the system must conform to these schemas.
"""

from asset_tracker.models.asset import (
    RECORD_FIELD_COUNT,
    Asset,
    AssetCategory,
    LoadReport,
)
from asset_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from asset_tracker.models.bank import (
    AccountOverview,
    BankConnectionResult,
    CardDetails,
    LinkedAccount,
    SupportedBank,
)
from asset_tracker.models.validation import (
    AssetInputResult,
    ValidationIssue,
    ValidationResult,
)
from asset_tracker.models.zakat import (
    ZakatAssessment,
    ZakatLine,
)

__all__ = [
    # Asset models
    "RECORD_FIELD_COUNT",
    "Asset",
    "AssetCategory",
    "LoadReport",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Bank models
    "AccountOverview",
    "BankConnectionResult",
    "CardDetails",
    "LinkedAccount",
    "SupportedBank",
    # Validation models
    "AssetInputResult",
    "ValidationIssue",
    "ValidationResult",
    # Zakat models
    "ZakatAssessment",
    "ZakatLine",
]
