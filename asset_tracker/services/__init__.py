"""
Services package.

Storage is re-exported here; the Zakat and bank services are imported
from their own modules (``asset_tracker.services.zakat``,
``asset_tracker.services.bank``) because they depend on the audit
package, which itself depends on storage.
"""

from asset_tracker.services.storage import (
    AssetStorageInterface,
    AuditStorageInterface,
    BankAccountRegistry,
    FlatFileAssetStore,
    JsonLinesAuditStorage,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    "AssetStorageInterface",
    "AuditStorageInterface",
    "BankAccountRegistry",
    "FlatFileAssetStore",
    "JsonLinesAuditStorage",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
