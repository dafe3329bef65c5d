"""Order fetcher wrapping the authority's request contract.

Each call is a single attempt bounded by ``timeout_s``. There is no retry
here: retry cadence belongs to the poll loop, and operator retries are
manual. Failures are mapped onto the error taxonomy so callers can tell a
transient network blip from a logical rejection.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from order_tracking.core.domain.errors import FetchError, NotFoundError, ServerRejectedError
from order_tracking.core.domain.order_state_machine import validate_state
from order_tracking.core.domain.types import Order
from order_tracking.core.ports.transport import (
    ORDERS_PATH,
    OrderTransport,
    TransportResponse,
    order_path,
    order_status_path,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S: float = 10.0

_ORDER_LIST = TypeAdapter(list[Order])


def _rejection_reason(response: TransportResponse) -> str:
    payload = response.payload
    if isinstance(payload, dict):
        for field in ("message", "error", "detail"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    if isinstance(payload, str) and payload:
        return payload
    return f"request rejected with HTTP {response.status_code}"


class OrderFetcher:
    """Typed, single-attempt access to the order authority."""

    def __init__(self, transport: OrderTransport, *, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self._transport = transport
        self._timeout_s = float(timeout_s)

    async def fetch_all(self) -> list[Order]:
        """Return all orders, newest first, exactly as the authority sorted them."""
        payload = await self._request("GET", ORDERS_PATH)
        try:
            return _ORDER_LIST.validate_python(payload)
        except ValidationError as exc:
            raise FetchError(f"malformed response for order list: {exc.error_count()} error(s)") from exc

    async def fetch_one(self, order_id: str) -> Order:
        payload = await self._request("GET", order_path(order_id), order_id=order_id)
        return self._parse_order(payload)

    async def request_transition(self, order_id: str, target_state: str) -> Order:
        """Ask the authority to move ``order_id`` to ``target_state``.

        The returned order is authoritative (status and updated_at).
        """
        validate_state(target_state)
        payload = await self._request(
            "PATCH",
            order_status_path(order_id),
            json={"status": target_state},
            order_id=order_id,
        )
        return self._parse_order(payload)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        order_id: str | None = None,
    ) -> Any:
        try:
            response = await asyncio.wait_for(
                self._transport.send(method, path, json=json),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise FetchError(f"{method} {path} timed out after {self._timeout_s:g}s") from exc
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise FetchError(f"{method} {path} failed: {exc!r}") from exc

        if response.ok:
            return response.payload

        LOGGER.debug(
            "Authority returned an error response",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )

        if response.status_code == 404 and order_id is not None:
            raise NotFoundError(order_id)
        if response.status_code >= 500:
            raise FetchError(f"{method} {path} failed with HTTP {response.status_code}")
        raise ServerRejectedError(_rejection_reason(response), status_code=response.status_code)

    @staticmethod
    def _parse_order(payload: Any) -> Order:
        try:
            return Order.model_validate(payload)
        except ValidationError as exc:
            raise FetchError(f"malformed response for order: {exc.error_count()} error(s)") from exc
