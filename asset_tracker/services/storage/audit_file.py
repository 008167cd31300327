"""
JSON Lines audit storage.

One audit event per line, appended to a file next to the asset files.
The file is never rewritten: events are only ever added.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from asset_tracker.models.audit import AuditEvent
from asset_tracker.services.storage.interface import (
    AuditStorageInterface,
    StorageReadError,
)


logger = structlog.get_logger(__name__)


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit log kept as JSON lines."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_file_write_failed",
                path=str(self._path),
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []

        events = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    try:
                        events.append(AuditEvent.from_json_line(line))
                    except (json.JSONDecodeError, ValidationError):
                        continue  # Skip malformed rows
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read audit events: {e}", path=self._path) from e
        return events

    def get_events_by_user(
        self,
        username: str,
    ) -> list[AuditEvent]:
        """Get events for one user, oldest first."""
        events = [e for e in self._read_events() if e.username == username]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
