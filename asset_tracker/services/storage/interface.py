"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the flat file for a real database later
2. Use in-memory storage for testing the flows
3. Keep business logic decoupled from the storage layout

The interface is intentionally small: the asset screens address records
by their position in the list, so that is what the store offers.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from asset_tracker.models.asset import Asset, LoadReport
from asset_tracker.models.audit import AuditEvent


class AssetStorageInterface(ABC):
    """
    Abstract interface for one user's asset store.

    Records are kept in insertion order and addressed by 0-based position.
    """

    @property
    @abstractmethod
    def username(self) -> str:
        """Owner of this store."""
        pass

    @abstractmethod
    def list(self) -> list[Asset]:
        """
        Current assets in insertion order.

        Returns the live sequence; callers must not modify it.
        """
        pass

    @abstractmethod
    def add(
        self,
        asset_type: str,
        name: str,
        value: Union[Decimal, float, str],
        purchase_date: str,
    ) -> Asset:
        """
        Create an asset with the next id and persist the store.

        Returns:
            The created asset

        Raises:
            StorageWriteError: If the store could not be written
        """
        pass

    @abstractmethod
    def update(self, position: int, new_asset: Asset) -> bool:
        """
        Replace the asset at a position and persist the store.

        Returns:
            True if replaced, False if the position is out of range
            (nothing is changed or written)

        Raises:
            StorageWriteError: If the store could not be written
            ValueError: If the new id belongs to an asset at another position
        """
        pass

    @abstractmethod
    def remove(self, position: int) -> Optional[Asset]:
        """
        Delete the asset at a position and persist the store.

        Returns:
            The removed asset, or None if the position is out of range

        Raises:
            StorageWriteError: If the store could not be written
        """
        pass

    @abstractmethod
    def reload(self) -> LoadReport:
        """Discard in-memory state and read the store again."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_user(
        self,
        username: str,
    ) -> list[AuditEvent]:
        """
        Get all events for one user in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A storage file exists but could not be read."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class StorageWriteError(StorageError):
    """
    A storage file could not be written.

    The previous file contents are left in place. In-memory state that
    was already changed is not rolled back.
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)
