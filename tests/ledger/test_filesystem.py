"""Tests for the dedup ledger, ban list reader and server identity file."""

import json
import os
import tempfile
from pathlib import Path
from unittest import mock
from uuid import uuid4

import pytest

from mcrep.errors import StorageError
from mcrep.ledger.models import RegistrationState
from mcrep.ledger.store.filesystem import (
    DedupLedger,
    ServerIdentityStore,
    ledger_key,
    load_banlist,
)


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestLedgerKey:

    def test_format(self):
        assert ledger_key("A", 1704067200) == "A:1704067200"


class TestDedupLedger:

    def test_load_missing_file_fails(self, tmp_dir):
        ledger = DedupLedger(tmp_dir / "submits.json")
        with pytest.raises(StorageError):
            ledger.load()
        assert not (tmp_dir / "submits.json").exists()

    def test_load_malformed_json_fails(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", "{not json")
        with pytest.raises(StorageError):
            DedupLedger(path).load()

    def test_load_non_mapping_fails(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", [])
        with pytest.raises(StorageError):
            DedupLedger(path).load()

    def test_load_bad_entry_fails(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", {"A:1": {"remote": "R"}})
        with pytest.raises(StorageError):
            DedupLedger(path).load()

    def test_initialize_creates_empty(self, tmp_dir):
        ledger = DedupLedger(tmp_dir / "submits.json")
        assert ledger.initialize() is True
        ledger.load()
        assert len(ledger) == 0

    def test_initialize_keeps_existing(self, tmp_dir):
        local = str(uuid4())
        path = _write(tmp_dir / "submits.json", {"A:1": {"local": local, "remote": "R"}})
        ledger = DedupLedger(path)
        assert ledger.initialize() is False
        ledger.load()
        assert ledger.contains("A", 1)

    def test_record_persists_immediately(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", {})
        ledger = DedupLedger(path)
        ledger.load()
        local = uuid4()
        ledger.record("A", 1704067200, local, "R1")

        on_disk = json.loads(path.read_text())
        assert on_disk == {"A:1704067200": {"local": str(local), "remote": "R1"}}

        reloaded = DedupLedger(path)
        reloaded.load()
        assert reloaded.contains("A", 1704067200)
        assert reloaded.entries["A:1704067200"].remote == "R1"

    def test_record_last_write_wins(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", {})
        ledger = DedupLedger(path)
        ledger.load()
        ledger.record("A", 1, uuid4(), "R1")
        ledger.record("A", 1, uuid4(), "R2")
        assert len(ledger) == 1
        assert ledger.entries["A:1"].remote == "R2"

    def test_contains_uses_exact_timestamp(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", {})
        ledger = DedupLedger(path)
        ledger.load()
        ledger.record("A", 1704067200, uuid4(), "R1")
        assert ledger.contains("A", 1704067200)
        assert not ledger.contains("A", 1704067200000)
        assert not ledger.contains("B", 1704067200)

    def test_failed_write_keeps_previous_snapshot(self, tmp_dir):
        path = _write(tmp_dir / "submits.json", {})
        ledger = DedupLedger(path)
        ledger.load()
        ledger.record("A", 1, uuid4(), "R1")
        before = path.read_text()

        with mock.patch("mcrep.ledger.store.filesystem.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                ledger.record("B", 2, uuid4(), "R2")

        assert path.read_text() == before
        assert [p for p in os.listdir(tmp_dir) if p.endswith(".tmp")] == []


class TestLoadBanlist:

    def test_preserves_order(self, tmp_dir):
        path = _write(tmp_dir / "banned-players.json", [
            {"uuid": "B", "created": "2024-01-02T00:00:00Z", "reason": "x"},
            {"uuid": "A", "created": "2024-01-01T00:00:00Z", "reason": "y"},
        ])
        bans = load_banlist(path)
        assert [row["uuid"] for row in bans] == ["B", "A"]

    def test_missing_file(self, tmp_dir):
        with pytest.raises(StorageError):
            load_banlist(tmp_dir / "banned-players.json")

    def test_not_a_list(self, tmp_dir):
        path = _write(tmp_dir / "banned-players.json", {"uuid": "A"})
        with pytest.raises(StorageError):
            load_banlist(path)

    def test_rows_returned_unvalidated(self, tmp_dir):
        rows = [{"uuid": "A", "created": "never"}, {"uuid": "B", "created": "2024-01-01T00:00:00Z"}]
        path = _write(tmp_dir / "banned-players.json", rows)
        assert load_banlist(path) == rows


class TestServerIdentityStore:

    def test_roundtrip(self, tmp_dir):
        store = ServerIdentityStore(tmp_dir / "server_uuid")
        assert store.load() is None
        store.save(RegistrationState(server_uuid="S1"))
        assert (tmp_dir / "server_uuid").read_text() == "S1"
        assert store.load().server_uuid == "S1"

    def test_empty_file_is_unregistered(self, tmp_dir):
        _write(tmp_dir / "server_uuid", "")
        assert ServerIdentityStore(tmp_dir / "server_uuid").load() is None

    def test_failed_write_keeps_previous_id(self, tmp_dir):
        store = ServerIdentityStore(tmp_dir / "server_uuid")
        store.save(RegistrationState(server_uuid="S1"))

        with mock.patch("mcrep.ledger.store.filesystem.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                store.save(RegistrationState(server_uuid="S2"))

        assert store.load().server_uuid == "S1"
        assert [p for p in os.listdir(tmp_dir) if p.endswith(".tmp")] == []
