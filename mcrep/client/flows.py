"""One-shot flows: server registration, manual submission, revocation.

None of these touch the dedup ledger. Registration persists the
remote-assigned server id; revocation outcome is only observable through
the remote response.
"""

from __future__ import annotations

from typing import Any

import bittensor as bt

from mcrep.errors import NetworkError, RemoteRejection, ValidationError
from mcrep.ledger.builder import current_timestamp, manual_record
from mcrep.ledger.encoder import encode_message
from mcrep.ledger.models import RegistrationState, RemoteResponse, SubmissionRecord
from mcrep.ledger.store.filesystem import ServerIdentityStore
from mcrep.ledger.store.interface import MessageSigner, ReputationTransport


def _require_status(operation: str, response: RemoteResponse) -> RemoteResponse:
    if not response.status:
        bt.logging.error({f"mcrep_{operation}": {"rejected": response.model_dump()}})
        raise RemoteRejection(operation, response)
    return response


async def register(
    server_name: str,
    signer: MessageSigner,
    transport: ReputationTransport,
    identity: ServerIdentityStore,
) -> RegistrationState:
    """Register this server and persist the assigned identifier."""
    if not server_name:
        raise ValidationError("register", "server name is required")

    previous = identity.load()
    if previous is not None:
        bt.logging.warning({
            "mcrep_register": {"replacing": previous.server_uuid, "server_name": server_name}
        })

    signed = await signer.sign(encode_message({"server_name": server_name}))
    response = _require_status("register", await transport.register(signed, signer.public_key()))
    if not response.uuid:
        raise NetworkError("register", "success response carries no server uuid")

    state = RegistrationState(server_uuid=response.uuid)
    identity.save(state)
    bt.logging.info({"mcrep_register": {"server_name": server_name, "server_uuid": state.server_uuid}})
    return state


async def submit_manual(
    player_uuid: str,
    points: Any,
    comment: str,
    signer: MessageSigner,
    transport: ReputationTransport,
    now: int | None = None,
) -> tuple[SubmissionRecord, str | None]:
    """Sign and submit a hand-written report.

    Points are validated before anything is signed or sent.

    Returns:
        (record, remote submission id)
    """
    record = manual_record(player_uuid, points, comment, now=now)
    signed = await signer.sign(encode_message(record.message_fields()))
    response = _require_status("manual", await transport.submit(signed))

    bt.logging.info({
        "mcrep_manual": {
            "player_uuid": record.player_uuid,
            "points": record.points,
            "local": str(record.uuid),
            "remote": response.uuid,
        }
    })
    return record, response.uuid


async def revoke(
    submission_id: str,
    comment: str,
    signer: MessageSigner,
    transport: ReputationTransport,
    now: int | None = None,
) -> RemoteResponse:
    """Ask the service to withdraw a previous submission."""
    if not submission_id:
        raise ValidationError("revoke", "submission id is required")

    message = encode_message({
        "timestamp": current_timestamp() if now is None else now,
        "comment": comment,
    })
    signed = await signer.sign(message)
    response = _require_status("revoke", await transport.revoke(submission_id, signed))
    bt.logging.info({"mcrep_revoke": {"submission_id": submission_id}})
    return response


__all__ = ["register", "revoke", "submit_manual"]
