"""Ban report ledger: models, canonical encoding, record builders, signing.

Submissions are signed ``key: value`` messages. The local dedup ledger
(``submits.json``) maps ``<player>:<timestamp>`` to the local and remote
ids of each accepted submission.
"""

from .builder import manual_record, record_from_ban, validate_points
from .encoder import encode_message, render_value
from .models import (
    BanEntry,
    LedgerEntry,
    RegistrationState,
    RemoteResponse,
    SubmissionRecord,
)

__all__ = [
    "BanEntry",
    "LedgerEntry",
    "RegistrationState",
    "RemoteResponse",
    "SubmissionRecord",
    "encode_message",
    "manual_record",
    "record_from_ban",
    "render_value",
    "validate_points",
]
