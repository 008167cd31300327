"""
Audit Logger

DESIGN DECISION: Every change to a user's financial data is logged.
This provides:
1. Complete traceability
2. Debugging capability when a file could not be read or written
3. A history the user can look at

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Always writes a local structured log, and optionally an audit file
"""

import logging
import sys
from typing import Any, Optional

import structlog

from asset_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from asset_tracker.services.storage import AuditStorageInterface


def _configure_structlog(json_logs: bool) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog and the stdlib logging it writes through.

    Call once at startup; loggers created before this keep the old setup.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    _configure_structlog(json_logs)


# Configure structlog for local logging
_configure_structlog(json_logs=True)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("asset_tracker.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_store_loaded(
        self,
        username: str,
        path: str,
        loaded: int,
        skipped_lines: list[int],
    ) -> None:
        """Log a store load, with one event per skipped record."""
        for line_number in skipped_lines:
            self.log(AuditEventBuilder.record_skipped(
                username=username,
                path=path,
                line_number=line_number,
            ))
        self.log(AuditEventBuilder.store_loaded(
            username=username,
            path=path,
            loaded=loaded,
            skipped=len(skipped_lines),
        ))

    def log_store_read_failed(
        self,
        username: str,
        path: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.store_read_failed(
            username=username,
            path=path,
            error_message=error_message,
        ))

    def log_asset_added(
        self,
        username: str,
        asset_id: int,
        asset_type: str,
        name: str,
        value: str,
    ) -> None:
        """Log a new asset."""
        self.log(AuditEventBuilder.asset_added(
            username=username,
            asset_id=asset_id,
            asset_type=asset_type,
            name=name,
            value=value,
        ))

    def log_asset_updated(
        self,
        username: str,
        asset_id: int,
        position: int,
        changes: dict[str, Any],
    ) -> None:
        """Log an asset edit."""
        self.log(AuditEventBuilder.asset_updated(
            username=username,
            asset_id=asset_id,
            position=position,
            changes=changes,
        ))

    def log_asset_removed(
        self,
        username: str,
        asset_id: int,
        position: int,
    ) -> None:
        """Log an asset removal."""
        self.log(AuditEventBuilder.asset_removed(
            username=username,
            asset_id=asset_id,
            position=position,
        ))

    def log_save_failed(
        self,
        username: str,
        path: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            username=username,
            path=path,
            error_message=error_message,
        ))

    def log_validation_failed(
        self,
        username: str,
        form: str,
        issues: list[dict],
    ) -> None:
        """Log rejected user input."""
        self.log(AuditEventBuilder.validation_failed(
            username=username,
            form=form,
            issues=issues,
        ))

    def log_bank_linked(
        self,
        username: str,
        bank: str,
        card_last_four: str,
    ) -> None:
        self.log(AuditEventBuilder.bank_linked(
            username=username,
            bank=bank,
            card_last_four=card_last_four,
        ))

    def log_bank_unlinked(self, username: str) -> None:
        self.log(AuditEventBuilder.bank_unlinked(username=username))

    def log_bank_link_rejected(
        self,
        username: str,
        issues: list[dict],
    ) -> None:
        self.log(AuditEventBuilder.bank_link_rejected(
            username=username,
            issues=issues,
        ))

    def log_zakat_calculated(
        self,
        username: str,
        total_value: str,
        total_zakat: str,
    ) -> None:
        self.log(AuditEventBuilder.zakat_calculated(
            username=username,
            total_value=total_value,
            total_zakat=total_zakat,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            username=username,
        ))
