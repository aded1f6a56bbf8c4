"""Client flows: ban list sync plus one-shot register / manual / revoke."""

from .flows import register, revoke, submit_manual
from .sync import SubmissionSync, SyncReport

__all__ = [
    "SubmissionSync",
    "SyncReport",
    "register",
    "revoke",
    "submit_manual",
]
