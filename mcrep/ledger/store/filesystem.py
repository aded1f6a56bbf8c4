"""Filesystem state for the sync client.

Layout inside the data directory:
  banned-players.json   server ban list (read-only)
  submits.json          dedup ledger {"<player>:<ts>": {"local", "remote"}}
  server_uuid           identifier assigned at registration

The ledger is rewritten in full after every mutation via tmp + rename,
so a crash leaves either the previous or the new snapshot on disk.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any
from uuid import UUID

import bittensor as bt
from pydantic import ValidationError as PydanticValidationError

from mcrep.errors import StorageError
from mcrep.ledger.models import LedgerEntry, RegistrationState

BANLIST_FILENAME = "banned-players.json"
LEDGER_FILENAME = "submits.json"
SERVER_UUID_FILENAME = "server_uuid"


def _read_json(path: Path, operation: str) -> Any:
    """Read plain JSON, mapping I/O and parse failures to StorageError."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise StorageError(operation, f"{path} does not exist") from e
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(operation, f"cannot read {path}: {e}") from e


def _write_atomic(path: Path, text: str) -> None:
    """Atomically replace ``path`` with ``text`` (tmp + rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _write_json_atomic(path: Path, data: Any) -> None:
    _write_atomic(path, json.dumps(data))


def ledger_key(player_uuid: str, timestamp: int) -> str:
    """Composite dedup key. ``timestamp`` is whole epoch seconds."""
    return f"{player_uuid}:{int(timestamp)}"


# ---------------------------------------------------------------------------
# Ban list
# ---------------------------------------------------------------------------


def load_banlist(path: Path) -> list[Any]:
    """Read the raw rows of the server ban list, preserving file order.

    Rows are validated one at a time by the caller, so a single bad row
    does not hide the rest of the list.
    """
    data = _read_json(path, "banlist")
    if not isinstance(data, list):
        raise StorageError("banlist", f"{path} must hold a JSON array")
    return data


# ---------------------------------------------------------------------------
# Dedup ledger
# ---------------------------------------------------------------------------


class DedupLedger:
    """Persisted map of submitted bans, owned by one sync run at a time."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.entries: dict[str, LedgerEntry] = {}

    def initialize(self) -> bool:
        """Create an empty ledger file. Returns False if one already exists."""
        if self.path.exists():
            return False
        _write_json_atomic(self.path, {})
        bt.logging.info({"mcrep_ledger": {"initialized": str(self.path)}})
        return True

    def load(self) -> None:
        """Load the full mapping into memory. Never creates the file."""
        data = _read_json(self.path, "ledger")
        if not isinstance(data, dict):
            raise StorageError("ledger", f"{self.path} must hold a JSON object")
        try:
            self.entries = {
                key: LedgerEntry.model_validate(value) for key, value in data.items()
            }
        except PydanticValidationError as e:
            raise StorageError("ledger", f"malformed entry in {self.path}: {e}") from e
        bt.logging.debug({"mcrep_ledger": {"loaded": len(self.entries)}})

    def contains(self, player_uuid: str, timestamp: int) -> bool:
        return ledger_key(player_uuid, timestamp) in self.entries

    def record(
        self,
        player_uuid: str,
        timestamp: int,
        local_id: UUID,
        remote_id: str | None,
    ) -> None:
        """Insert or overwrite an entry, then persist the whole mapping."""
        key = ledger_key(player_uuid, timestamp)
        self.entries[key] = LedgerEntry(local=local_id, remote=remote_id)
        self._save()
        bt.logging.debug({"mcrep_ledger": {"recorded": key, "remote": remote_id}})

    def _save(self) -> None:
        data = {key: entry.model_dump(mode="json") for key, entry in self.entries.items()}
        try:
            _write_json_atomic(self.path, data)
        except OSError as e:
            raise StorageError("ledger", f"cannot write {self.path}: {e}") from e

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Server identity
# ---------------------------------------------------------------------------


class ServerIdentityStore:
    """Single-line file holding the registered server identifier."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def save(self, state: RegistrationState) -> None:
        try:
            _write_atomic(self.path, state.server_uuid)
        except OSError as e:
            raise StorageError("register", f"cannot write {self.path}: {e}") from e

    def load(self) -> RegistrationState | None:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError("register", f"cannot read {self.path}: {e}") from e
        if not value:
            return None
        return RegistrationState(server_uuid=value)


__all__ = [
    "BANLIST_FILENAME",
    "DedupLedger",
    "LEDGER_FILENAME",
    "SERVER_UUID_FILENAME",
    "ServerIdentityStore",
    "ledger_key",
    "load_banlist",
]
