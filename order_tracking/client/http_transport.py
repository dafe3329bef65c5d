"""httpx-based transport for the order authority's REST API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from order_tracking.core.ports.transport import TransportResponse

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class HttpxTransport:
    """Single-attempt JSON transport over an ``httpx.AsyncClient``.

    Transport failures (``httpx.TransportError``, including timeouts) are
    raised to the caller. Any response the server sent, including 4xx/5xx,
    is returned as a TransportResponse.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            headers=DEFAULT_HEADERS,
        )

    async def send(self, method: str, path: str, *, json: Any = None) -> TransportResponse:
        LOGGER.debug("HTTP request", extra={"method": method, "path": path})

        resp = await self._client.request(method, path, json=json)

        try:
            payload: Any = resp.json() if resp.content else None
        except ValueError:
            payload = resp.text

        if resp.is_error:
            LOGGER.warning(
                "HTTP error response",
                extra={"method": method, "path": path, "status_code": resp.status_code},
            )
        return TransportResponse(status_code=resp.status_code, payload=payload)

    async def create_order(self, order_data: dict[str, Any]) -> TransportResponse:
        """Place an order. Used by checkout collaborators, never by the sync core."""
        return await self.send("POST", "/api/orders", json=order_data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
