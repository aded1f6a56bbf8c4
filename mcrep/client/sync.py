"""Ban list sync: submit every ban the dedup ledger has not seen yet.

One pass per invocation: diff the ban list against the ledger, then for
each new ban build -> encode -> sign -> submit -> wait -> reconcile, one
at a time. The ledger is written after each accepted submission, so an
interrupted run keeps every reconciliation that already happened.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import bittensor as bt
from pydantic import ValidationError as PydanticValidationError

from mcrep.errors import NetworkError, SigningError
from mcrep.ledger.builder import record_from_ban
from mcrep.ledger.encoder import encode_message
from mcrep.ledger.models import BanEntry, RemoteResponse, SubmissionRecord
from mcrep.ledger.store.filesystem import DedupLedger, ledger_key, load_banlist
from mcrep.ledger.store.interface import MessageSigner, ReputationTransport


@dataclass
class SyncReport:
    """Outcome of one sync run. ``skipped`` holds raw ban list rows."""

    submitted: list[SubmissionRecord] = field(default_factory=list)
    rejected: list[SubmissionRecord] = field(default_factory=list)
    skipped: list[Any] = field(default_factory=list)
    work_list: int = 0

    def summary(self) -> dict[str, int]:
        return {
            "work_list": self.work_list,
            "submitted": len(self.submitted),
            "rejected": len(self.rejected),
            "skipped": len(self.skipped),
        }


def _describe(row: Any) -> str:
    if isinstance(row, dict):
        return f"{row.get('uuid')}@{row.get('created')}"
    return repr(row)


class SubmissionSync:
    """Submits unsent bans from the server ban list."""

    def __init__(
        self,
        signer: MessageSigner,
        transport: ReputationTransport,
        ledger: DedupLedger,
        banlist_path: Path,
        wait_seconds: float = 1.0,
    ):
        self.signer = signer
        self.transport = transport
        self.ledger = ledger
        self.banlist_path = Path(banlist_path)
        self.wait_seconds = wait_seconds

    def diff(self, rows: list[Any]) -> list[Any]:
        """Rows with no ledger entry, in ban-list order, each key once.

        Rows that do not parse have no key and stay in the work list, so
        the failure is reported when the entry is built.
        """
        seen: set[str] = set()
        work: list[Any] = []
        for row in rows:
            try:
                ban = BanEntry.model_validate(row)
            except PydanticValidationError:
                work.append(row)
                continue
            key = ledger_key(ban.player_uuid, ban.timestamp)
            if key in seen or self.ledger.contains(ban.player_uuid, ban.timestamp):
                continue
            seen.add(key)
            work.append(row)
        return work

    async def run(self) -> SyncReport:
        """Run one sync pass. NetworkErrors abort the remaining work list."""
        rows = load_banlist(self.banlist_path)
        self.ledger.load()

        work = self.diff(rows)
        report = SyncReport(work_list=len(work))
        bt.logging.info({
            "mcrep_sync": {
                "bans": len(rows),
                "ledger": len(self.ledger),
                "work_list": len(work),
            }
        })

        for row in work:
            await self._submit_one(row, report)

        bt.logging.info({"mcrep_sync": {"done": report.summary()}})
        return report

    async def _submit_one(self, row: Any, report: SyncReport) -> None:
        try:
            record = record_from_ban(BanEntry.model_validate(row))
            signed = await self.signer.sign(encode_message(record.message_fields()))
        except (PydanticValidationError, SigningError) as e:
            # Nothing was sent, so nothing is written; retried next run
            bt.logging.warning({
                "mcrep_sync": {
                    "skipped": _describe(row),
                    "error": str(e),
                }
            })
            report.skipped.append(row)
            return

        response = await self.transport.submit(signed)
        await asyncio.sleep(self.wait_seconds)
        self._reconcile(record, response, report)

    def _reconcile(
        self,
        record: SubmissionRecord,
        response: RemoteResponse,
        report: SyncReport,
    ) -> None:
        key = ledger_key(record.player_uuid, record.timestamp)
        if not response.status:
            bt.logging.warning({
                "mcrep_sync": {
                    "rejected": key,
                    "local": str(record.uuid),
                    "message": response.message,
                }
            })
            report.rejected.append(record)
            return

        if not response.uuid:
            raise NetworkError("submit", f"success response for {key} carries no uuid")

        self.ledger.record(record.player_uuid, record.timestamp, record.uuid, response.uuid)
        report.submitted.append(record)
        bt.logging.info({
            "mcrep_sync": {
                "submitted": key,
                "local": str(record.uuid),
                "remote": response.uuid,
            }
        })


__all__ = ["SubmissionSync", "SyncReport"]
