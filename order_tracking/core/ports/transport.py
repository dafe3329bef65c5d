"""Order authority transport protocol.

This module defines the abstract request boundary consumed by the fetcher.
Concrete implementations adapt a specific HTTP client (or a test double) to
this protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

ORDERS_PATH = "/api/orders"


def order_path(order_id: str) -> str:
    return f"{ORDERS_PATH}/{quote(order_id, safe='')}"


def order_status_path(order_id: str) -> str:
    return f"{order_path(order_id)}/status"


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """A well-formed response from the authority, successful or not."""

    status_code: int
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class OrderTransport(Protocol):
    """Authority-facing request boundary.

    Implementations perform exactly one attempt per call. Transport-level
    failures (connection refused, DNS, reset) are raised as exceptions; any
    response the authority actually sent is returned as a TransportResponse,
    whatever its status code.
    """

    async def send(self, method: str, path: str, *, json: Any = None) -> TransportResponse:
        """Send one request and return the decoded response."""
