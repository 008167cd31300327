"""
Audit Models for Asset Tracker

Every change to a user's assets or linked bank account is logged for
audit purposes. This provides:
1. Traceability of all changes to stored financial data
2. Debugging information when a file could not be read or written
3. A way to reconstruct what happened to an asset

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_LOADED = "store_loaded"
    RECORD_SKIPPED = "record_skipped"
    STORE_READ_FAILED = "store_read_failed"

    # Asset changes
    ASSET_ADDED = "asset_added"
    ASSET_UPDATED = "asset_updated"
    ASSET_REMOVED = "asset_removed"
    SAVE_FAILED = "save_failed"

    # Input checks
    INPUT_VALIDATION_FAILED = "input_validation_failed"

    # Bank link
    BANK_LINKED = "bank_linked"
    BANK_UNLINKED = "bank_unlinked"
    BANK_LINK_REJECTED = "bank_link_rejected"

    # Calculations
    ZAKAT_CALCULATED = "zakat_calculated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - whose data, which asset?
    username: Optional[str] = Field(
        default=None,
        description="Owner of the store the event relates to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'asset', 'store', 'bank_account')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Asset id the event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize to a single line for the audit log file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)

    @classmethod
    def from_json_line(cls, line: str) -> "AuditEvent":
        return cls.model_validate(json.loads(line))


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.asset_added("alice", asset_id=3, ...)
        event = AuditEventBuilder.bank_linked("alice", "CIB", "4242")
    """

    @staticmethod
    def store_loaded(
        username: str,
        path: str,
        loaded: int,
        skipped: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            username=username,
            entity_type="store",
            description=f"Loaded {loaded} assets ({skipped} malformed records skipped)",
            details={
                "path": path,
                "loaded": loaded,
                "skipped": skipped,
            },
        )

    @staticmethod
    def record_skipped(
        username: str,
        path: str,
        line_number: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="store",
            description=f"Skipped malformed record on line {line_number}",
            details={
                "path": path,
                "line_number": line_number,
            },
        )

    @staticmethod
    def store_read_failed(
        username: str,
        path: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_READ_FAILED,
            severity=AuditSeverity.ERROR,
            username=username,
            entity_type="store",
            description="Asset file could not be read",
            error_message=error_message,
            details={"path": path},
        )

    @staticmethod
    def asset_added(
        username: str,
        asset_id: int,
        asset_type: str,
        name: str,
        value: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_ADDED,
            username=username,
            entity_type="asset",
            entity_id=asset_id,
            description=f"Asset added: {asset_type} {name} - ${value}",
            details={
                "type": asset_type,
                "name": name,
                "value": value,
            },
            is_user_action=True,
        )

    @staticmethod
    def asset_updated(
        username: str,
        asset_id: int,
        position: int,
        changes: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_UPDATED,
            username=username,
            entity_type="asset",
            entity_id=asset_id,
            description=f"Asset #{asset_id} updated",
            details={
                "position": position,
                "changes": changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def asset_removed(
        username: str,
        asset_id: int,
        position: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_REMOVED,
            username=username,
            entity_type="asset",
            entity_id=asset_id,
            description=f"Asset #{asset_id} removed",
            details={"position": position},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        username: str,
        path: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            username=username,
            entity_type="store",
            description="Asset file could not be written",
            error_message=error_message,
            details={"path": path},
        )

    @staticmethod
    def validation_failed(
        username: str,
        form: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"{form.capitalize()} input rejected with {len(issues)} issues",
            details={
                "form": form,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def bank_linked(
        username: str,
        bank: str,
        card_last_four: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_LINKED,
            username=username,
            entity_type="bank_account",
            description=f"Bank account linked: {bank} card ending {card_last_four}",
            details={
                "bank": bank,
                "card_last_four": card_last_four,
            },
            is_user_action=True,
        )

    @staticmethod
    def bank_unlinked(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_UNLINKED,
            username=username,
            entity_type="bank_account",
            description="Bank account disconnected",
            is_user_action=True,
        )

    @staticmethod
    def bank_link_rejected(
        username: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_LINK_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            entity_type="bank_account",
            description=f"Bank link rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def zakat_calculated(
        username: str,
        total_value: str,
        total_zakat: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ZAKAT_CALCULATED,
            username=username,
            description=f"Zakat calculated: ${total_zakat} on ${total_value}",
            details={
                "total_value": total_value,
                "total_zakat": total_zakat,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            username=username,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
