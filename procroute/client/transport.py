"""HTTP transport for the batched client."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx
from loguru import logger

from procroute.rpc.codec import decode_envelope_error, decode_response, encode_request
from procroute.rpc.messages import Call, CallResult
from procroute.utils.exceptions import MalformedEnvelopeError, TransportError


@runtime_checkable
class RpcTransport(Protocol):
    """Sends a batch of calls and returns one result per call, in order."""

    async def send(self, calls: list[Call]) -> list[CallResult]:
        ...


class HttpTransport:
    """
    POSTs batch envelopes with httpx.

    Any failure that prevents reading per-call results raises TransportError:
    connection errors, timeouts, non-JSON bodies, a top-level error envelope,
    or a result array whose length differs from the batch.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._headers = headers or {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(self, calls: list[Call]) -> list[CallResult]:
        payload = encode_request(calls, batch=True)
        try:
            response = await self._get_client().post(self.url, json=payload, headers=self._headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}", code="TIMEOUT", retryable=True) from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}", code="CONNECTION_ERROR", retryable=True) from e

        body = response.content
        try:
            return decode_response(body, expected=len(calls))
        except MalformedEnvelopeError as e:
            envelope_error = decode_envelope_error(body)
            if envelope_error is not None:
                raise TransportError(
                    str(envelope_error.get("message") or "request rejected"),
                    code=str(envelope_error.get("code") or "TRANSPORT_ERROR"),
                    status_code=response.status_code,
                ) from e
            if not response.is_success:
                raise TransportError(
                    f"HTTP {response.status_code} with unreadable body",
                    status_code=response.status_code,
                    retryable=response.status_code >= 500,
                ) from e
            logger.warning("RPC response could not be decoded: {}", e.message)
            raise TransportError(e.message, status_code=response.status_code) from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
