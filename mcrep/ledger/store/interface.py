"""Signer and transport protocols - pluggable collaborator interfaces.

Implementations: GPGSigner (gnupg keyring), ReputationAPIClient (httpx).
Tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mcrep.ledger.models import RemoteResponse


@runtime_checkable
class MessageSigner(Protocol):
    """Produces cleartext-signed versions of text messages."""

    async def sign(self, message: str) -> str:
        """Return ``message`` wrapped in a cleartext signature."""
        ...

    def public_key(self) -> str:
        """Return the armored public key."""
        ...


@runtime_checkable
class ReputationTransport(Protocol):
    """Remote reputation service operations."""

    async def register(self, signed_message: str, public_key: str) -> RemoteResponse:
        """PUT /v1/server/register."""
        ...

    async def submit(self, signed_message: str) -> RemoteResponse:
        """PUT /v1/submit/new."""
        ...

    async def revoke(self, submission_id: str, signed_message: str) -> RemoteResponse:
        """DELETE /v1/submit/uuid/{id}."""
        ...


__all__ = ["MessageSigner", "ReputationTransport"]
