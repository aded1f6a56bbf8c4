"""HTTP client for the reputation service.

Each call sends one signed message and parses the JSON status reply.
There is no retry; timeouts surface as retryable NetworkErrors.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import bittensor as bt
import httpx
from pydantic import ValidationError as PydanticValidationError

from mcrep.errors import NetworkError
from mcrep.ledger.models import RemoteResponse

REGISTER_PATH = "/v1/server/register"
SUBMIT_PATH = "/v1/submit/new"
REVOKE_PATH = "/v1/submit/uuid/{submission_id}"


class ReputationAPIClient:
    """Client-side transport for register / submit / revoke."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ReputationAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- Raw request --

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        content: str | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> RemoteResponse:
        headers = {}
        if content is not None:
            headers["Content-Type"] = "text/plain"

        try:
            resp = await self._client.request(
                method,
                path,
                content=content.encode() if content is not None else None,
                json=json_body,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(operation, f"request timed out: {e}", retryable=True) from e
        except httpx.HTTPError as e:
            raise NetworkError(operation, f"transport failure: {e}") from e

        bt.logging.debug({
            "mcrep_http": {
                "operation": operation,
                "method": method,
                "path": path,
                "status_code": resp.status_code,
            }
        })

        if not resp.is_success:
            raise NetworkError(
                operation,
                f"unexpected status {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
                retryable=resp.status_code >= 500,
            )
        return self._parse(operation, resp)

    @staticmethod
    def _parse(operation: str, resp: httpx.Response) -> RemoteResponse:
        try:
            data = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise NetworkError(
                operation,
                f"malformed response body: {resp.text[:200]!r}",
                status_code=resp.status_code,
            ) from e
        if not isinstance(data, dict):
            raise NetworkError(
                operation,
                f"expected a JSON object, got {type(data).__name__}",
                status_code=resp.status_code,
            )
        try:
            return RemoteResponse.model_validate(data)
        except PydanticValidationError as e:
            raise NetworkError(
                operation, f"malformed response: {e}", status_code=resp.status_code,
            ) from e

    # -- ReputationTransport interface --

    async def register(self, signed_message: str, public_key: str) -> RemoteResponse:
        return await self._request(
            "register",
            "PUT",
            REGISTER_PATH,
            json_body={"message": signed_message, "public_key": public_key},
        )

    async def submit(self, signed_message: str) -> RemoteResponse:
        return await self._request("submit", "PUT", SUBMIT_PATH, content=signed_message)

    async def revoke(self, submission_id: str, signed_message: str) -> RemoteResponse:
        path = REVOKE_PATH.format(submission_id=quote(submission_id, safe=""))
        return await self._request("revoke", "DELETE", path, content=signed_message)


__all__ = ["REGISTER_PATH", "REVOKE_PATH", "ReputationAPIClient", "SUBMIT_PATH"]
