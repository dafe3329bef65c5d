"""Shared fixtures for the semantic test suite.

All tests are fully offline: the order authority is replaced by a scripted
in-memory transport.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import pytest

from order_tracking.core.domain.types import Order
from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.sinks.callback_sink import CallbackSink
from order_tracking.core.ports.transport import TransportResponse
from order_tracking.core.store.order_store import OrderStore

BASE_TS = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

Responder = Callable[[Any], Awaitable[TransportResponse]]


class FakeTransport:
    """Scripted transport. The last scripted response for a route is sticky."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self._routes: dict[tuple[str, str], deque[Any]] = {}

    def script(self, method: str, path: str, *responses: Any) -> None:
        self._routes[(method, path)] = deque(responses)

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if (m, p) == (method, path))

    async def send(self, method: str, path: str, *, json: Any = None) -> TransportResponse:
        self.calls.append((method, path, json))
        queue = self._routes.get((method, path))
        if not queue:
            return TransportResponse(status_code=404, payload={"message": "no route"})

        item = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return await item(json)
        return item


def order_wire(
    order_id: str,
    status: str = "pending",
    *,
    updated_minutes: int = 0,
    number: str | None = None,
) -> dict[str, Any]:
    """Return an authority-shaped (camelCase) order payload."""
    return {
        "_id": order_id,
        "orderNumber": number or f"ORD-{order_id}",
        "status": status,
        "items": [
            {"name": "Burger", "price": 8.5, "quantity": 2},
            {"name": "Fries", "price": 3.0, "quantity": 1},
        ],
        "totalAmount": 20.0,
        "customer": {
            "name": "Sam Rivera",
            "phone": "555-0100",
            "email": "sam@example.com",
            "address": "1 Main St",
        },
        "createdAt": BASE_TS.isoformat(),
        "updatedAt": (BASE_TS + timedelta(minutes=updated_minutes)).isoformat(),
    }


def make_order(order_id: str, status: str = "pending", *, updated_minutes: int = 0) -> Order:
    return Order.model_validate(order_wire(order_id, status, updated_minutes=updated_minutes))


def ok(payload: Any) -> TransportResponse:
    return TransportResponse(status_code=200, payload=payload)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def store() -> OrderStore:
    return OrderStore()


@pytest.fixture
def events() -> list[Any]:
    return []


@pytest.fixture
def bus(events: list[Any]) -> EventBus:
    return EventBus(sinks=[CallbackSink(events.append)])
