"""Pydantic models for ban reports and the local dedup ledger.

- BanEntry: one row of the server's ``banned-players.json`` (read-only input)
- SubmissionRecord: the signed report sent to the reputation service
- LedgerEntry: local/remote id pair stored per submitted ban
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Timestamps - one conversion used by both the diff and the record builder
# ---------------------------------------------------------------------------

MINECRAFT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def parse_ban_time(value: str) -> datetime:
    """Parse a ban creation time.

    Accepts the Minecraft server format (``2024-01-01 00:00:00 +0000``)
    and ISO 8601, including a trailing ``Z``.
    """
    text = value.strip()
    try:
        return datetime.strptime(text, MINECRAFT_TIME_FORMAT)
    except ValueError:
        pass
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def epoch_seconds(dt: datetime) -> int:
    """Whole seconds since the Unix epoch, floored. Naive times are UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())


# ---------------------------------------------------------------------------
# Ban list input
# ---------------------------------------------------------------------------


class BanEntry(BaseModel):
    """A banned player as written by the Minecraft server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    player_uuid: str = Field(alias="uuid")
    created: datetime
    reason: str = ""
    name: str | None = None
    source: str | None = None
    expires: str | None = None

    @field_validator("created", mode="before")
    @classmethod
    def _parse_created(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_ban_time(value)
        return value

    @property
    def timestamp(self) -> int:
        return epoch_seconds(self.created)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class SubmissionRecord(BaseModel):
    """A reputation report. Field order is the order fields are signed in."""

    model_config = ConfigDict(frozen=True)

    uuid: UUID
    timestamp: int
    player_uuid: str
    points: float
    comment: str = ""

    def message_fields(self) -> dict[str, Any]:
        """Fields in signing order, ready for the canonical encoder."""
        return {
            "uuid": self.uuid,
            "timestamp": self.timestamp,
            "player_uuid": self.player_uuid,
            "points": self.points,
            "comment": self.comment,
        }


class RemoteResponse(BaseModel):
    """JSON reply of the reputation service."""

    model_config = ConfigDict(extra="allow")

    status: bool
    uuid: str | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------


class LedgerEntry(BaseModel):
    """Local and remote ids of one submitted ban."""

    local: UUID
    remote: str | None = None


class RegistrationState(BaseModel):
    """Remote-assigned identifier of this server."""

    server_uuid: str = Field(min_length=1)


__all__ = [
    "BanEntry",
    "LedgerEntry",
    "MINECRAFT_TIME_FORMAT",
    "RegistrationState",
    "RemoteResponse",
    "SubmissionRecord",
    "epoch_seconds",
    "parse_ban_time",
]
