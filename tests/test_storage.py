"""
Tests for the flat-file stores

Every test works in its own temporary data directory.
"""

import json
import os
from decimal import Decimal

import pytest

from asset_tracker.models.asset import Asset
from asset_tracker.models.audit import AuditEventBuilder, AuditEventType
from asset_tracker.models.bank import LinkedAccount, SupportedBank
from asset_tracker.services.storage import (
    BankAccountRegistry,
    FlatFileAssetStore,
    JsonLinesAuditStorage,
    StorageReadError,
    StorageWriteError,
    asset_file_path,
    validate_username,
)
from asset_tracker.services.storage import files as storage_files
from asset_tracker.services.storage import flat_file


class TestUsernames:
    """Tests for file name safety."""

    @pytest.mark.parametrize("username", ["", "   ", "../bob", "a/b", "a\\b", ".", "..", "x\x00y"])
    def test_rejects_unsafe_usernames(self, username):
        """Test that names which could leave the data directory are refused."""
        with pytest.raises(ValueError):
            validate_username(username)

    def test_accepts_plain_username(self):
        assert validate_username("alice") == "alice"

    def test_store_rejects_unsafe_username(self, data_dir):
        with pytest.raises(ValueError):
            FlatFileAssetStore.open("../alice", data_dir=data_dir)

    def test_file_name_convention(self, data_dir):
        """Test the default assets_<username>.txt naming."""
        assert asset_file_path("alice", data_dir) == data_dir / "assets_alice.txt"

    def test_file_name_from_settings(self, tmp_path, monkeypatch):
        """Test that prefix, suffix and directory come from settings."""
        from asset_tracker.config import get_settings

        monkeypatch.setenv("ASSET_TRACKER_ASSET_FILE_PREFIX", "holdings-")
        monkeypatch.setenv("ASSET_TRACKER_ASSET_FILE_SUFFIX", ".csv")
        get_settings.cache_clear()
        assert asset_file_path("bob") == tmp_path / "data" / "holdings-bob.csv"


class TestFlatFileAssetStore:
    """Tests for one user's asset store."""

    def test_new_user_scenario(self, data_dir):
        """Test the add / add / remove / reopen walkthrough for a new user."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert store.list() == []
        assert not (data_dir / "assets_alice.txt").exists()

        first = store.add("Stocks", "AAPL", Decimal("1000.0"), "2024-01-01")
        second = store.add("Gold", "Bar", Decimal("500.0"), "2024-02-01")
        assert (first.id, second.id) == (1, 2)
        assert (data_dir / "assets_alice.txt").read_text(encoding="utf-8") == (
            "1,Stocks,AAPL,1000.0,2024-01-01\n"
            "2,Gold,Bar,500.0,2024-02-01\n"
        )

        removed = store.remove(0)
        assert removed == first
        assert (data_dir / "assets_alice.txt").read_text(encoding="utf-8") == (
            "2,Gold,Bar,500.0,2024-02-01\n"
        )

        reopened = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert [asset.id for asset in reopened.list()] == [2]
        assert reopened.add("Crypto", "BTC", Decimal("42"), "2024-03-01").id == 3

    def test_ids_continue_after_highest_stored_id(self, data_dir):
        """Test that new ids start above the largest id in the file."""
        (data_dir / "assets_alice.txt").write_text(
            "4,Stocks,AAPL,10,2024-01-01\n"
            "9,Gold,Bar,20,2024-01-02\n"
            "2,Crypto,ETH,30,2024-01-03\n",
            encoding="utf-8",
        )
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert store.next_id == 10
        assert store.add("Gold", "Coin", Decimal("1"), "2024-05-05").id == 10
        assert store.add("Gold", "Coin", Decimal("1"), "2024-05-06").id == 11

    def test_ids_are_per_user(self, data_dir):
        """Test that one user's ids do not affect another's."""
        alice = FlatFileAssetStore.open("alice", data_dir=data_dir)
        for i in range(3):
            alice.add("Stocks", f"S{i}", Decimal("1"), "2024-01-01")

        bob = FlatFileAssetStore.open("bob", data_dir=data_dir)
        assert bob.add("Gold", "Bar", Decimal("1"), "2024-01-01").id == 1
        assert [a.id for a in alice.list()] == [1, 2, 3]

    def test_reload_is_idempotent(self, data_dir):
        """Test that reading the same file twice gives the same list."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1000.0"), "2024-01-01")
        store.add("Real Estate", "Flat", Decimal("250000"), "2019-06-30")

        first = list(FlatFileAssetStore.open("alice", data_dir=data_dir).list())
        second = list(FlatFileAssetStore.open("alice", data_dir=data_dir).list())
        assert first == second == store.list()

    def test_reload_discards_unsaved_view(self, data_dir):
        """Test that reload re-reads the file rather than merging."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        (data_dir / "assets_alice.txt").write_text("5,Gold,Bar,2,2024-01-01\n", encoding="utf-8")

        report = store.reload()
        assert report.loaded == 1
        assert [a.id for a in store.list()] == [5]
        assert store.next_id == 6

    def test_malformed_lines_are_skipped(self, data_dir):
        """Test that bad records are skipped and reported by line number."""
        (data_dir / "assets_alice.txt").write_text(
            "1,Stocks,AAPL,1000.0,2024-01-01\n"
            "2,Gold,Bar,500.0\n"
            "\n"
            "x,Gold,Bar,500.0,2024-02-01\n"
            "3,Crypto,BTC,not-a-number,2024-03-01\n"
            "4,Gold,Coin,12.5,2024-04-01\n",
            encoding="utf-8",
        )
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)

        assert [a.id for a in store.list()] == [1, 4]
        assert store.load_report.loaded == 2
        assert store.load_report.skipped_lines == [2, 4, 5]
        assert store.load_report.ok

    def test_saving_drops_skipped_lines(self, data_dir):
        """Test that the next save writes only the records that loaded."""
        path = data_dir / "assets_alice.txt"
        path.write_text("1,Stocks,AAPL,1000.0,2024-01-01\ngarbage\n", encoding="utf-8")

        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Gold", "Bar", Decimal("5"), "2024-01-01")
        assert path.read_text(encoding="utf-8") == (
            "1,Stocks,AAPL,1000.0,2024-01-01\n"
            "2,Gold,Bar,5,2024-01-01\n"
        )

    def test_name_with_comma_survives_reload(self, data_dir):
        """Test that a comma inside a name does not split the record."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "Apple, Inc.", Decimal("1000.0"), "2024-01-01")

        reopened = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert reopened.load_report.skipped == 0
        assert reopened.list()[0].name == "Apple, Inc."

    @pytest.mark.parametrize("position", [-1, 2, 99])
    def test_out_of_range_positions_are_ignored(self, data_dir, position):
        """Test that update and remove outside [0, size) change nothing."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1000.0"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("500.0"), "2024-02-01")
        path = data_dir / "assets_alice.txt"
        before = path.read_bytes()
        replacement = Asset(id=7, type="Crypto", name="BTC", value=Decimal("1"), purchase_date="2024")

        assert store.update(position, replacement) is False
        assert store.remove(position) is None
        assert store.edit(position, "Crypto", "BTC", Decimal("1"), "2024") is None
        assert len(store) == 2
        assert path.read_bytes() == before

    def test_update_first_position(self, data_dir):
        """Test that position 0 is a valid update target."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1000.0"), "2024-01-01")
        replacement = Asset(id=1, type="Stocks", name="MSFT", value=Decimal("900.5"), purchase_date="2024-01-02")

        assert store.update(0, replacement) is True
        reopened = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert reopened.list() == [replacement]

    def test_update_with_larger_id_moves_counter(self, data_dir):
        """Test that an explicit id is never handed out again."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.update(0, Asset(id=20, type="Gold", name="Bar", value=Decimal("1"), purchase_date="2024"))
        assert store.add("Gold", "Coin", Decimal("1"), "2024").id == 21

    def test_update_rejects_id_of_another_asset(self, data_dir):
        """Test that update cannot leave two assets with the same id."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("2"), "2024-01-02")
        path = data_dir / "assets_alice.txt"
        before = path.read_bytes()
        clash = Asset(id=1, type="Gold", name="Coin", value=Decimal("3"), purchase_date="2024")

        with pytest.raises(ValueError, match="already used"):
            store.update(1, clash)

        assert [a.id for a in store.list()] == [1, 2]
        assert store.get(2).name == "Bar"
        assert path.read_bytes() == before

    def test_update_may_keep_own_id(self, data_dir):
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("2"), "2024-01-02")
        same_id = Asset(id=2, type="Gold", name="Big Bar", value=Decimal("3"), purchase_date="2024")
        assert store.update(1, same_id) is True

    def test_removed_highest_id_is_not_reused(self, data_dir):
        """Test that ids stay unused after the newest asset is removed and the store reopened."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        for name in ("AAPL", "MSFT", "GOOG"):
            store.add("Stocks", name, Decimal("1"), "2024-01-01")
        assert store.remove(2).id == 3

        reopened = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert [a.id for a in reopened.list()] == [1, 2]
        assert reopened.next_id == 4
        assert reopened.add("Gold", "Bar", Decimal("1"), "2024-02-01").id == 4

    def test_counter_file_records_next_id(self, data_dir):
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        assert store.counter_path == data_dir / "assets_alice.txt.next_id"
        assert store.counter_path.read_text(encoding="utf-8") == "2\n"

    @pytest.mark.parametrize("counter_text", ["garbage\n", "-4\n", ""])
    def test_unusable_counter_file_falls_back_to_stored_ids(self, data_dir, counter_text):
        """Test that a damaged counter file is ignored in favour of the highest stored id."""
        (data_dir / "assets_alice.txt").write_text("7,Gold,Bar,2,2024-01-01\n", encoding="utf-8")
        (data_dir / "assets_alice.txt.next_id").write_text(counter_text, encoding="utf-8")
        assert FlatFileAssetStore.open("alice", data_dir=data_dir).next_id == 8

    def test_stored_ids_win_over_stale_counter(self, data_dir):
        (data_dir / "assets_alice.txt").write_text("7,Gold,Bar,2,2024-01-01\n", encoding="utf-8")
        (data_dir / "assets_alice.txt.next_id").write_text("3\n", encoding="utf-8")
        assert FlatFileAssetStore.open("alice", data_dir=data_dir).next_id == 8

    def test_edit_keeps_id(self, data_dir):
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("2"), "2024-01-02")

        updated = store.edit(1, "Gold", "Big Bar", Decimal("3"), "2024-01-03")
        assert updated.id == 2
        assert store.get(2).name == "Big Bar"

    def test_add_rejects_invalid_record_without_change(self, data_dir):
        """Test that an invalid asset neither consumes an id nor touches the list."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        with pytest.raises(ValueError):
            store.add("Stocks", "AAPL", Decimal("-5"), "2024-01-01")
        assert store.list() == []
        assert store.next_id == 1

    def test_lookups(self, data_dir):
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("2"), "2024-01-02")
        assert store.position_of(2) == 1
        assert store.position_of(42) is None
        assert store.get(42) is None

    def test_store_loads_lazily(self, data_dir):
        """Test that a store built directly reads its file on first use."""
        (data_dir / "assets_alice.txt").write_text("3,Gold,Bar,2,2024-01-01\n", encoding="utf-8")
        store = FlatFileAssetStore("alice", data_dir=data_dir)
        assert store.is_loaded is False
        assert len(store) == 1
        assert store.is_loaded is True

    def test_failed_write_raises_and_keeps_file(self, data_dir, monkeypatch):
        """Test that a failed save is reported and the old file survives."""
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1000.0"), "2024-01-01")
        path = data_dir / "assets_alice.txt"
        before = path.read_bytes()

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(storage_files.os, "replace", fail_replace)

        with pytest.raises(StorageWriteError) as exc_info:
            store.add("Gold", "Bar", Decimal("500.0"), "2024-02-01")

        assert exc_info.value.path == path
        assert path.read_bytes() == before
        assert sorted(p.name for p in data_dir.iterdir()) == [
            "assets_alice.txt",
            "assets_alice.txt.next_id",
        ]
        # The in-memory list is not rolled back
        assert len(store) == 2

    def test_unreadable_file_blocks_writes(self, data_dir):
        """Test that a store which could not read its file refuses to overwrite it."""
        path = data_dir / "assets_alice.txt"
        path.write_bytes(b"1,Stocks,AAPL,10,2024-01-01\n\xff\xfe broken\n")

        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        assert store.list() == []
        assert store.load_report.ok is False
        assert store.load_report.io_error

        with pytest.raises(StorageReadError):
            store.add("Gold", "Bar", Decimal("1"), "2024-01-01")
        with pytest.raises(StorageReadError):
            store.remove(0)
        assert path.read_bytes().endswith(b"\xff\xfe broken\n")

    def test_save_writes_through_atomic_helper(self, data_dir, monkeypatch):
        """Test that the store writes the whole list in one call."""
        written = []
        monkeypatch.setattr(
            flat_file,
            "write_lines_atomic",
            lambda path, lines: written.append((path, list(lines))),
        )
        store = FlatFileAssetStore.open("alice", data_dir=data_dir)
        store.add("Stocks", "AAPL", Decimal("1"), "2024-01-01")
        store.add("Gold", "Bar", Decimal("2"), "2024-01-02")

        assert written[-1] == (
            data_dir / "assets_alice.txt",
            ["1,Stocks,AAPL,1,2024-01-01", "2,Gold,Bar,2,2024-01-02"],
        )


class TestAtomicWrites:
    """Tests for the shared file helpers."""

    def test_creates_parent_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "file.txt"
        storage_files.write_lines_atomic(target, ["a", "b"])
        assert target.read_text(encoding="utf-8") == "a\nb\n"

    def test_failure_leaves_no_temp_file(self, tmp_path, monkeypatch):
        target = tmp_path / "file.txt"
        target.write_text("old\n", encoding="utf-8")

        def fail_fsync(fd):
            raise OSError("I/O error")

        monkeypatch.setattr(storage_files.os, "fsync", fail_fsync)
        with pytest.raises(OSError):
            storage_files.write_text_atomic(target, "new\n")

        assert target.read_text(encoding="utf-8") == "old\n"
        assert os.listdir(tmp_path) == ["file.txt"]


class TestJsonLinesAuditStorage:
    """Tests for the audit file."""

    def test_append_and_read_back(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "logs" / "audit.jsonl")
        assert storage.append_event(AuditEventBuilder.asset_removed("alice", asset_id=1, position=0))
        assert storage.append_event(AuditEventBuilder.bank_unlinked("bob"))

        alice_events = storage.get_events_by_user("alice")
        assert len(alice_events) == 1
        assert alice_events[0].event_type == AuditEventType.ASSET_REMOVED
        assert len(storage.get_recent_events()) == 2

    def test_recent_events_newest_first(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        for asset_id in (1, 2, 3):
            storage.append_event(AuditEventBuilder.asset_removed("alice", asset_id=asset_id, position=0))

        recent = storage.get_recent_events(limit=2)
        assert len(recent) == 2
        assert recent[0].timestamp >= recent[1].timestamp

    def test_malformed_lines_are_ignored(self, tmp_path):
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(AuditEventBuilder.bank_unlinked("alice"))
        with path.open("a", encoding="utf-8") as f:
            f.write("not json\n")
            f.write(json.dumps({"event_type": "nonsense"}) + "\n")

        assert len(storage.get_events_by_user("alice")) == 1

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonLinesAuditStorage(tmp_path / "none.jsonl").get_recent_events() == []

    def test_write_failure_returns_false(self, tmp_path):
        """Test that an unwritable audit file does not raise."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = JsonLinesAuditStorage(blocker / "audit.jsonl")
        assert storage.append_event(AuditEventBuilder.bank_unlinked("alice")) is False


class TestBankAccountRegistry:
    """Tests for the linked account file."""

    def test_link_and_get(self, tmp_path):
        registry = BankAccountRegistry(tmp_path / "bank_accounts.json")
        registry.link(LinkedAccount(username="alice", bank=SupportedBank.CIB, card_last_four="4242"))

        account = registry.get("alice")
        assert account.bank == SupportedBank.CIB
        assert account.card_last_four == "4242"
        assert registry.get("bob") is None
        assert registry.usernames() == ["alice"]

    def test_only_last_four_digits_are_stored(self, tmp_path):
        path = tmp_path / "bank_accounts.json"
        registry = BankAccountRegistry(path)
        registry.link(LinkedAccount(username="alice", bank="QNB", card_last_four="1234"))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data["alice"]) == {"bank", "card_last_four", "linked_at"}

    def test_relink_replaces(self, tmp_path):
        registry = BankAccountRegistry(tmp_path / "bank_accounts.json")
        registry.link(LinkedAccount(username="alice", bank="CIB", card_last_four="1111"))
        registry.link(LinkedAccount(username="alice", bank="NBE", card_last_four="2222"))
        assert registry.get("alice").bank == SupportedBank.NBE

    def test_unlink(self, tmp_path):
        registry = BankAccountRegistry(tmp_path / "bank_accounts.json")
        registry.link(LinkedAccount(username="alice", bank="CIB", card_last_four="1111"))
        assert registry.unlink("alice") is True
        assert registry.unlink("alice") is False
        assert registry.get("alice") is None

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "bank_accounts.json"
        path.write_text("{not json", encoding="utf-8")
        assert BankAccountRegistry(path).get("alice") is None

    def test_link_leaves_corrupt_file_untouched(self, tmp_path):
        """Test that linking refuses to overwrite a file it could not parse."""
        path = tmp_path / "bank_accounts.json"
        original = '{"bob": {"bank": "CIB", "card_last_four": "9999", "linked_at": "2024-01-01T00:00:00"},'
        path.write_text(original, encoding="utf-8")
        registry = BankAccountRegistry(path)

        with pytest.raises(StorageReadError):
            registry.link(LinkedAccount(username="alice", bank="CIB", card_last_four="1111"))

        assert path.read_text(encoding="utf-8") == original
        assert registry.get("alice") is None

    def test_unlink_leaves_corrupt_file_untouched(self, tmp_path):
        path = tmp_path / "bank_accounts.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageReadError):
            BankAccountRegistry(path).unlink("alice")
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_non_object_file_blocks_link(self, tmp_path):
        path = tmp_path / "bank_accounts.json"
        path.write_text("[1, 2]", encoding="utf-8")
        registry = BankAccountRegistry(path)

        assert registry.usernames() == []
        with pytest.raises(StorageReadError):
            registry.link(LinkedAccount(username="alice", bank="NBE", card_last_four="1111"))
        assert path.read_text(encoding="utf-8") == "[1, 2]"

    def test_bad_record_is_skipped(self, tmp_path):
        path = tmp_path / "bank_accounts.json"
        path.write_text(json.dumps({"alice": {"bank": "Nowhere Bank", "card_last_four": "1"}}), encoding="utf-8")
        assert BankAccountRegistry(path).get("alice") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
