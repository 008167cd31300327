"""
Main Orchestrator for Asset Tracker

This module ties together all the components and defines the flows a
presentation layer calls into:
1. Asset management (open a user's store, add / edit / remove, list)
2. Portfolio totals and Zakat
3. Bank account linking (via BankConnectionService)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Form input is validated before it reaches the store
- Every change to stored data is audited
- Storage failures are audited and then re-raised to the caller
"""

from pathlib import Path
from typing import Optional

from asset_tracker.audit import AuditLogger, configure_logging
from asset_tracker.config import get_settings
from asset_tracker.models.asset import Asset
from asset_tracker.models.validation import AssetInputResult
from asset_tracker.models.zakat import ZakatAssessment
from asset_tracker.queries import PortfolioSummary, summarize
from asset_tracker.services.bank import BankConnectionService
from asset_tracker.services.storage import (
    BankAccountRegistry,
    FlatFileAssetStore,
    JsonLinesAuditStorage,
    StorageWriteError,
)
from asset_tracker.services.zakat import ZakatCalculator
from asset_tracker.validation import AssetInputValidator


class AssetManagementFlow:
    """
    Orchestrates the asset screens for any number of users.

    One store is kept open per username for the life of the flow.
    Positions are 0-based indexes into ``list_assets(username)``.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        validator: Optional[AssetInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        zakat_calculator: Optional[ZakatCalculator] = None,
    ):
        self._data_dir = Path(data_dir) if data_dir is not None else get_settings().app.data_dir
        self._validator = validator or AssetInputValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._zakat = zakat_calculator or ZakatCalculator()
        self._stores: dict[str, FlatFileAssetStore] = {}

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def open_store(self, username: str) -> FlatFileAssetStore:
        """Get the user's store, loading it on first use."""
        store = self._stores.get(username)
        if store is None:
            store = FlatFileAssetStore.open(username, data_dir=self._data_dir)
            self._audit_load(store)
            self._stores[username] = store
        return store

    def reload_store(self, username: str) -> FlatFileAssetStore:
        """Throw away the in-memory copy and read the user's file again."""
        store = self.open_store(username)
        store.reload()
        self._audit_load(store)
        return store

    def _audit_load(self, store: FlatFileAssetStore) -> None:
        report = store.load_report
        if report.io_error:
            self._audit_logger.log_store_read_failed(
                username=store.username,
                path=str(report.path),
                error_message=report.io_error,
            )
            return
        self._audit_logger.log_store_loaded(
            username=store.username,
            path=str(report.path),
            loaded=report.loaded,
            skipped_lines=report.skipped_lines,
        )

    def list_assets(self, username: str) -> list[Asset]:
        return self.open_store(username).list()

    def display_lines(self, username: str) -> list[str]:
        """One display line per asset, in list order."""
        return [asset.display() for asset in self.list_assets(username)]

    def _validate(
        self,
        username: str,
        asset_type: str,
        name: str,
        value_text: str,
        purchase_date: str,
    ) -> AssetInputResult:
        result = self._validator.validate(asset_type, name, value_text, purchase_date)
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                username=username,
                form="asset",
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                    if i.severity == "error"
                ],
            )
        return result

    def _save_failed(self, store: FlatFileAssetStore, error: StorageWriteError) -> None:
        self._audit_logger.log_save_failed(
            username=store.username,
            path=str(store.path),
            error_message=str(error),
        )

    def add_asset(
        self,
        username: str,
        asset_type: str,
        name: str,
        value_text: str,
        purchase_date: str,
    ) -> tuple[AssetInputResult, Optional[Asset]]:
        """
        Validate form input and add the asset.

        Returns:
            (validation_result, created_asset). The asset is None when
            validation failed; nothing is stored in that case.

        Raises:
            StorageWriteError: The asset was added in memory but the file
                               could not be written.
        """
        result = self._validate(username, asset_type, name, value_text, purchase_date)
        if not result.is_valid:
            return result, None

        store = self.open_store(username)
        try:
            asset = store.add(asset_type, name, result.value, purchase_date)
        except StorageWriteError as e:
            self._save_failed(store, e)
            raise

        self._audit_logger.log_asset_added(
            username=username,
            asset_id=asset.id,
            asset_type=asset.type,
            name=asset.name,
            value=str(asset.value),
        )
        return result, asset

    def edit_asset(
        self,
        username: str,
        position: int,
        asset_type: str,
        name: str,
        value_text: str,
        purchase_date: str,
    ) -> tuple[AssetInputResult, Optional[Asset]]:
        """
        Validate form input and replace the asset at ``position``, keeping its id.

        Returns:
            (validation_result, updated_asset). The asset is None when
            validation failed or the position is out of range.
        """
        result = self._validate(username, asset_type, name, value_text, purchase_date)
        if not result.is_valid:
            return result, None

        store = self.open_store(username)
        assets = store.list()
        if not 0 <= position < len(assets):
            return result, None
        before = assets[position]

        try:
            updated = store.edit(position, asset_type, name, result.value, purchase_date)
        except StorageWriteError as e:
            self._save_failed(store, e)
            raise

        changes = {
            field: {"from": str(getattr(before, field)), "to": str(getattr(updated, field))}
            for field in ("type", "name", "value", "purchase_date")
            if getattr(before, field) != getattr(updated, field)
        }
        self._audit_logger.log_asset_updated(
            username=username,
            asset_id=updated.id,
            position=position,
            changes=changes,
        )
        return result, updated

    def remove_asset(self, username: str, position: int) -> Optional[Asset]:
        """Remove the asset at ``position``. Returns None if out of range."""
        store = self.open_store(username)
        try:
            removed = store.remove(position)
        except StorageWriteError as e:
            self._save_failed(store, e)
            raise

        if removed is not None:
            self._audit_logger.log_asset_removed(
                username=username,
                asset_id=removed.id,
                position=position,
            )
        return removed

    def summary(self, username: str) -> PortfolioSummary:
        return summarize(self.list_assets(username))

    def zakat(self, username: str) -> ZakatAssessment:
        """Zakat due on everything the user holds."""
        assessment = self._zakat.assess(self.list_assets(username))
        self._audit_logger.log_zakat_calculated(
            username=username,
            total_value=str(assessment.total_value),
            total_zakat=str(assessment.total_zakat),
        )
        return assessment


def create_app_components(
    use_audit_file: bool = True,
    data_dir: Optional[Path] = None,
) -> tuple[AssetManagementFlow, BankConnectionService]:
    """
    Factory function to create all application components.

    Args:
        use_audit_file: Whether to persist audit events to the audit file.
                        Set to False for local-only logging.
        data_dir: Overrides the configured data directory.

    Returns:
        (asset_flow, bank_service)
    """
    settings = get_settings().app
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    data_dir = Path(data_dir) if data_dir is not None else settings.data_dir

    audit_storage = None
    if use_audit_file and settings.audit_log_file:
        audit_storage = JsonLinesAuditStorage(data_dir / settings.audit_log_file)
    audit_logger = AuditLogger(audit_storage)

    asset_flow = AssetManagementFlow(
        data_dir=data_dir,
        audit_logger=audit_logger,
    )

    bank_service = BankConnectionService(
        registry=BankAccountRegistry(data_dir / settings.bank_accounts_file),
        audit_logger=audit_logger,
        store_factory=asset_flow.open_store,
    )

    return asset_flow, bank_service
