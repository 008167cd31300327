"""
Storage Services Package

Provides abstract interfaces and the flat-file implementations used for
assets, linked bank accounts and the audit log.
"""

from asset_tracker.services.storage.interface import (
    AssetStorageInterface,
    AuditStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from asset_tracker.services.storage.audit_file import JsonLinesAuditStorage
from asset_tracker.services.storage.bank_accounts import BankAccountRegistry
from asset_tracker.services.storage.flat_file import (
    FlatFileAssetStore,
    asset_file_path,
    validate_username,
)

__all__ = [
    # Interfaces
    "AssetStorageInterface",
    "AuditStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Flat file implementations
    "BankAccountRegistry",
    "FlatFileAssetStore",
    "JsonLinesAuditStorage",
    "asset_file_path",
    "validate_username",
]
