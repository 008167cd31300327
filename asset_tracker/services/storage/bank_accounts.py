"""
Linked bank account registry.

A single JSON file maps each username to the bank account they linked:

    {"alice": {"bank": "CIB", "card_last_four": "4242", "linked_at": "..."}}

Only the bank and the last four card digits are kept. A file that cannot
be parsed reads as empty, but linking or unlinking is refused until it is
repaired, since rewriting it would drop every other user's link.
"""

import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from asset_tracker.models.bank import LinkedAccount
from asset_tracker.services.storage.files import write_text_atomic
from asset_tracker.services.storage.interface import StorageReadError, StorageWriteError


logger = structlog.get_logger(__name__)


class BankAccountRegistry:
    """Per-user linked bank accounts, persisted as one JSON document."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self, strict: bool = False) -> dict[str, dict]:
        """
        Read the registry.

        An unreadable or malformed file is logged and treated as empty,
        unless ``strict`` is set: then StorageReadError is raised, so a
        change cannot overwrite other users' links.
        """
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("bank_registry_read_failed", path=str(self._path), error=str(e))
            if strict:
                raise StorageReadError(
                    f"Failed to read bank accounts: {e}", path=self._path
                ) from e
            return {}
        if not isinstance(data, dict):
            logger.error("bank_registry_malformed", path=str(self._path))
            if strict:
                raise StorageReadError(
                    "Bank accounts file does not hold a JSON object", path=self._path
                )
            return {}
        return data

    def _save(self, data: dict[str, dict]) -> None:
        try:
            write_text_atomic(self._path, json.dumps(data, indent=2, ensure_ascii=False))
        except OSError as e:
            logger.error("bank_registry_write_failed", path=str(self._path), error=str(e))
            raise StorageWriteError(f"Failed to save bank accounts: {e}", path=self._path) from e

    def get(self, username: str) -> Optional[LinkedAccount]:
        """The account ``username`` has linked, if any."""
        record = self._load().get(username)
        if not record:
            return None
        try:
            return LinkedAccount(username=username, **record)
        except (TypeError, ValidationError):
            logger.warning("bank_registry_record_skipped", username=username)
            return None

    def link(self, account: LinkedAccount) -> None:
        """
        Record (or replace) the linked account for its user.

        Raises:
            StorageReadError: The existing file could not be read; it is left as is
            StorageWriteError: The file could not be written
        """
        data = self._load(strict=True)
        data[account.username] = account.model_dump(mode="json", exclude={"username"})
        self._save(data)

    def unlink(self, username: str) -> bool:
        """
        Forget the user's linked account. Returns False if none was linked.

        Raises StorageReadError, like ``link``, when the file cannot be read.
        """
        data = self._load(strict=True)
        if username not in data:
            return False
        del data[username]
        self._save(data)
        return True

    def usernames(self) -> list[str]:
        return sorted(self._load())
