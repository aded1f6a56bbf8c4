"""Submission record builders.

Two entry points: automatic import of a ban-list entry, and manual
reports from the CLI. Both stamp a fresh local uuid on every record.
"""

from __future__ import annotations

import math
import time
import uuid
from typing import Any

from mcrep.errors import ValidationError
from mcrep.ledger.models import BanEntry, SubmissionRecord

# Automatic imports carry the maximum negative weight.
BAN_POINTS = -1

MIN_ABS_POINTS = 0.1
MAX_ABS_POINTS = 1.0


def validate_points(points: Any, operation: str = "manual") -> float:
    """Coerce and check a reputation delta.

    Accepts p in [-1, -0.1] or [0.1, 1]. Near-zero deltas are rejected.
    """
    try:
        value = float(points)
    except (TypeError, ValueError) as e:
        raise ValidationError(operation, f"points must be a number, got {points!r}") from e

    if math.isnan(value) or not MIN_ABS_POINTS <= abs(value) <= MAX_ABS_POINTS:
        raise ValidationError(
            operation,
            f"points must lie in [-1, -0.1] or [0.1, 1], got {points!r}",
        )
    return value


def current_timestamp() -> int:
    return math.floor(time.time())


def record_from_ban(ban: BanEntry) -> SubmissionRecord:
    """Build the report for an entry of the server ban list."""
    return SubmissionRecord(
        uuid=uuid.uuid4(),
        timestamp=ban.timestamp,
        player_uuid=ban.player_uuid,
        points=BAN_POINTS,
        comment=ban.reason,
    )


def manual_record(
    player_uuid: str,
    points: Any,
    comment: str,
    now: int | None = None,
) -> SubmissionRecord:
    """Build a manual report. Raises ValidationError on bad input."""
    if not player_uuid:
        raise ValidationError("manual", "player uuid is required")
    value = validate_points(points)
    return SubmissionRecord(
        uuid=uuid.uuid4(),
        timestamp=current_timestamp() if now is None else now,
        player_uuid=player_uuid,
        points=value,
        comment=comment,
    )


__all__ = [
    "BAN_POINTS",
    "current_timestamp",
    "manual_record",
    "record_from_ban",
    "validate_points",
]
