"""Error taxonomy for the reputation client.

Every error carries the name of the operation that raised it so the CLI
can tell a local problem (config, storage, validation) from a remote one.
"""

from __future__ import annotations

from typing import Any


class ReputationClientError(Exception):
    """Base class for all client errors."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message

    def to_log(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "operation": self.operation,
            "message": self.message,
        }


class ConfigurationError(ReputationClientError):
    """Missing keys or config options an operation needs."""


class StorageError(ReputationClientError):
    """Ledger, ban list or identity file missing or unparsable."""


class ValidationError(ReputationClientError):
    """Caller input rejected before anything was signed."""


class SigningError(ReputationClientError):
    """gpg failed to produce a signature."""


class NetworkError(ReputationClientError):
    """Transport failure, non-2xx status or malformed response body."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
    ):
        super().__init__(operation, message)
        self.status_code = status_code
        self.retryable = retryable

    def to_log(self) -> dict[str, Any]:
        data = super().to_log()
        data["status_code"] = self.status_code
        data["retryable"] = self.retryable
        return data


class RemoteRejection(ReputationClientError):
    """Well-formed response from the service with ``status: false``."""

    def __init__(self, operation: str, response: Any):
        detail = getattr(response, "message", None) or "status=false"
        super().__init__(operation, f"rejected by remote service ({detail})")
        self.response = response


__all__ = [
    "ConfigurationError",
    "NetworkError",
    "RemoteRejection",
    "ReputationClientError",
    "SigningError",
    "StorageError",
    "ValidationError",
]
