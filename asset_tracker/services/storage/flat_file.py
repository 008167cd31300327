"""
Flat File Asset Storage

DESIGN DECISION: Each user's assets live in one small text file
(``assets_<username>.txt`` by default), one record per line, in the
order they were added. The whole file is rewritten after every change.

TRADEOFFS:
- Fine for a personal portfolio of a few hundred assets
- No locking: one process is expected to own a user's file at a time
- Rewrites are atomic (temp file + replace), so a failed save keeps the
  previous file, but memory and disk can disagree until the next save

Ids are assigned per store. The next id is kept in a small counter file
beside the asset file (``assets_<username>.txt.next_id``) and seeded on
load with the larger of that value and the highest stored id plus one,
so an id is never handed out twice, even after the highest asset was
removed and the store reopened. Two users never influence each
other's ids.
"""

from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

import structlog

from asset_tracker.config import get_settings
from asset_tracker.models.asset import Asset, LoadReport
from asset_tracker.services.storage.files import write_lines_atomic, write_text_atomic
from asset_tracker.services.storage.interface import (
    AssetStorageInterface,
    StorageReadError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)

# Appended to the asset file name to get the id counter file
COUNTER_SUFFIX = ".next_id"


def validate_username(username: str) -> str:
    """Reject usernames that cannot safely be part of a file name."""
    if not username or not username.strip():
        raise ValueError("Username must not be empty")
    if "/" in username or "\\" in username or "\x00" in username:
        raise ValueError(f"Username must not contain path separators: {username!r}")
    if username in (".", ".."):
        raise ValueError(f"Invalid username: {username!r}")
    return username


def asset_file_path(
    username: str,
    data_dir: Optional[Path] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
) -> Path:
    """Path of the asset file belonging to ``username``."""
    settings = get_settings().app
    data_dir = Path(data_dir) if data_dir is not None else settings.data_dir
    prefix = settings.asset_file_prefix if prefix is None else prefix
    suffix = settings.asset_file_suffix if suffix is None else suffix
    return data_dir / f"{prefix}{validate_username(username)}{suffix}"


class FlatFileAssetStore(AssetStorageInterface):
    """
    One user's assets, held in memory and mirrored to a flat file.

    Use ``FlatFileAssetStore.open(username)`` to get a loaded store.
    A store that has not been loaded yet loads itself on first use.
    """

    def __init__(
        self,
        username: str,
        data_dir: Optional[Path] = None,
        file_prefix: Optional[str] = None,
        file_suffix: Optional[str] = None,
    ):
        self._username = validate_username(username)
        self._path = asset_file_path(username, data_dir, file_prefix, file_suffix)
        self._counter_path = self._path.with_name(f"{self._path.name}{COUNTER_SUFFIX}")
        self._assets: list[Asset] = []
        self._next_id = 1
        self._loaded = False
        self.load_report = LoadReport(path=self._path)
        self._logger = logger.bind(username=username, path=str(self._path))

    @classmethod
    def open(
        cls,
        username: str,
        data_dir: Optional[Path] = None,
        file_prefix: Optional[str] = None,
        file_suffix: Optional[str] = None,
    ) -> "FlatFileAssetStore":
        """Create the store for ``username`` and load its file."""
        store = cls(username, data_dir, file_prefix, file_suffix)
        store.reload()
        return store

    @property
    def username(self) -> str:
        return self._username

    @property
    def path(self) -> Path:
        return self._path

    @property
    def counter_path(self) -> Path:
        return self._counter_path

    @property
    def next_id(self) -> int:
        """Id the next added asset will get."""
        self._ensure_loaded()
        return self._next_id

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._assets)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def reload(self) -> LoadReport:
        """
        Read the user's file from scratch.

        Malformed records are skipped and listed in the report. If the
        file cannot be read the store stays empty and refuses to write,
        so a later save cannot overwrite data it never saw.
        """
        assets: list[Asset] = []
        report = LoadReport(path=self._path)

        if self._path.exists():
            try:
                with self._path.open("r", encoding="utf-8", newline="") as f:
                    for line_number, line in enumerate(f, start=1):
                        if not line.strip():
                            continue
                        asset = Asset.parse(line)
                        if asset is None:
                            report.skipped_lines.append(line_number)
                            self._logger.warning(
                                "asset_record_skipped",
                                line_number=line_number,
                            )
                            continue
                        assets.append(asset)
            except (OSError, UnicodeDecodeError) as e:
                report.io_error = str(e)
                assets = []
                self._logger.error("asset_store_read_failed", error=str(e))

        report.loaded = len(assets)
        self._assets = assets
        self._next_id = max(
            max((asset.id for asset in assets), default=0) + 1,
            self._read_counter() or 1,
        )
        self._loaded = True
        self.load_report = report

        self._logger.info(
            "asset_store_loaded",
            loaded=report.loaded,
            skipped=report.skipped,
            next_id=self._next_id,
        )
        return report

    def _read_counter(self) -> Optional[int]:
        """The saved next id, or None when there is no usable counter file."""
        if not self._counter_path.exists():
            return None
        try:
            text = self._counter_path.read_text(encoding="utf-8").strip()
            if not text.isdigit():
                raise ValueError(f"not a counter value: {text!r}")
            return int(text)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            self._logger.warning(
                "asset_counter_ignored",
                counter_path=str(self._counter_path),
                error=str(e),
            )
            return None

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.reload()

    def _ensure_writable(self) -> None:
        self._ensure_loaded()
        if not self.load_report.ok:
            raise StorageReadError(
                f"Assets for {self._username} were not loaded "
                f"({self.load_report.io_error}); reload before making changes",
                path=self._path,
            )

    # -------------------------------------------------------------------------
    # Changes
    # -------------------------------------------------------------------------

    def add(
        self,
        asset_type: str,
        name: str,
        value: Union[Decimal, float, str],
        purchase_date: str,
    ) -> Asset:
        """Create an asset with the next id, append it and save."""
        self._ensure_writable()

        asset = Asset(
            id=self._next_id,
            type=asset_type,
            name=name,
            value=value,
            purchase_date=purchase_date,
        )
        self._next_id += 1
        self._assets.append(asset)
        self._logger.info("asset_added", asset_id=asset.id)

        self._save()
        return asset

    def update(self, position: int, new_asset: Asset) -> bool:
        """
        Replace the asset at ``position``; out-of-range positions are ignored.

        Raises:
            ValueError: ``new_asset.id`` belongs to an asset at another position.
        """
        self._ensure_writable()

        if not 0 <= position < len(self._assets):
            self._logger.debug("asset_update_out_of_range", position=position)
            return False

        for other, asset in enumerate(self._assets):
            if other != position and asset.id == new_asset.id:
                raise ValueError(
                    f"Asset id {new_asset.id} is already used at position {other}"
                )

        self._assets[position] = new_asset
        if new_asset.id >= self._next_id:
            self._next_id = new_asset.id + 1
        self._logger.info("asset_updated", asset_id=new_asset.id, position=position)

        self._save()
        return True

    def edit(
        self,
        position: int,
        asset_type: str,
        name: str,
        value: Union[Decimal, float, str],
        purchase_date: str,
    ) -> Optional[Asset]:
        """
        Replace the fields of the asset at ``position``, keeping its id.

        Returns the new record, or None if the position is out of range.
        """
        self._ensure_writable()

        if not 0 <= position < len(self._assets):
            self._logger.debug("asset_update_out_of_range", position=position)
            return None

        updated = Asset(
            id=self._assets[position].id,
            type=asset_type,
            name=name,
            value=value,
            purchase_date=purchase_date,
        )
        self.update(position, updated)
        return updated

    def remove(self, position: int) -> Optional[Asset]:
        """Delete the asset at ``position``; out-of-range positions are ignored."""
        self._ensure_writable()

        if not 0 <= position < len(self._assets):
            self._logger.debug("asset_remove_out_of_range", position=position)
            return None

        removed = self._assets.pop(position)
        self._logger.info("asset_removed", asset_id=removed.id, position=position)

        self._save()
        return removed

    def _save(self) -> None:
        """Rewrite the whole file from the in-memory list."""
        try:
            write_lines_atomic(self._path, (asset.serialize() for asset in self._assets))
            write_text_atomic(self._counter_path, f"{self._next_id}\n")
        except OSError as e:
            self._logger.error("asset_store_write_failed", error=str(e))
            raise StorageWriteError(
                f"Failed to save assets for {self._username}: {e}",
                path=self._path,
            ) from e

        self._logger.debug("asset_store_saved", count=len(self._assets))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, asset_id: int) -> Optional[Asset]:
        """Find an asset by id."""
        position = self.position_of(asset_id)
        return None if position is None else self._assets[position]

    def position_of(self, asset_id: int) -> Optional[int]:
        """Position of the asset with ``asset_id``, or None."""
        self._ensure_loaded()
        for position, asset in enumerate(self._assets):
            if asset.id == asset_id:
                return position
        return None

    def list(self) -> list[Asset]:
        """Current assets in insertion order (the live list, not a copy)."""
        self._ensure_loaded()
        return self._assets
