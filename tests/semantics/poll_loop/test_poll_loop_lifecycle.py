"""
Semantic test: poll loop subscription lifecycle.

Invariant:
A subscription polls immediately and then on its own cadence, never has
more than one fetch in flight (extra ticks are skipped, not queued), and
after unsubscribe issues no further fetch and discards any in-flight
result.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from conftest import FakeTransport, make_order, ok, order_wire

from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.events import (
    OrdersAppearedEvent,
    OrderStatusChangedEvent,
    SnapshotCommittedEvent,
)
from order_tracking.core.ports.transport import TransportResponse
from order_tracking.core.store.order_store import OrderStore
from order_tracking.core.sync.fetcher import OrderFetcher
from order_tracking.core.sync.poll_loop import PollLoop


async def _drain(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


async def _sleep_forever(_interval: float) -> None:
    await asyncio.Event().wait()


def _gated(gate: asyncio.Event, response: TransportResponse):
    async def respond(_body: object) -> TransportResponse:
        await gate.wait()
        return response

    return respond


def test_default_cadences_are_independent(transport: FakeTransport, store: OrderStore, bus: EventBus) -> None:
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)

    assert loop.subscribe(start=False).interval_s == 30.0
    assert loop.subscribe("1", start=False).interval_s == 10.0

    custom = PollLoop(
        fetcher=OrderFetcher(transport),
        store=store,
        event_bus=bus,
        list_interval_s=5.0,
        order_interval_s=45.0,
    )
    assert custom.subscribe(start=False).interval_s == 5.0
    assert custom.subscribe("1", start=False).interval_s == 45.0


@pytest.mark.asyncio
async def test_subscribe_polls_immediately(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
) -> None:
    transport.script("GET", "/api/orders", ok([order_wire("1")]))
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus, sleep=_sleep_forever)

    subscription = loop.subscribe()
    await _drain()

    assert subscription.polls_succeeded == 1
    assert [o.id for o in store.get_snapshot(None)] == ["1"]

    await loop.aclose()
    assert not subscription.active
    assert loop.subscriptions == ()


@pytest.mark.asyncio
async def test_tick_during_inflight_fetch_is_skipped(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
) -> None:
    gate = asyncio.Event()
    transport.script("GET", "/api/orders", _gated(gate, ok([order_wire("1")])))
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)
    subscription = loop.subscribe(start=False)

    assert loop.trigger(subscription) is True
    await _drain()
    assert subscription.fetch_in_flight
    assert subscription.state == "polling"

    assert loop.trigger(subscription) is False
    assert loop.trigger(subscription) is False
    assert subscription.skipped_ticks == 2
    assert transport.calls_to("GET", "/api/orders") == 1

    gate.set()
    await _drain()

    assert not subscription.fetch_in_flight
    assert subscription.polls_succeeded == 1
    assert loop.trigger(subscription) is True
    await _drain()
    assert transport.calls_to("GET", "/api/orders") == 2


@pytest.mark.asyncio
async def test_unsubscribe_discards_inflight_result(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
    events: list[Any],
) -> None:
    gate = asyncio.Event()
    transport.script("GET", "/api/orders", _gated(gate, ok([order_wire("1")])))
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)
    subscription = loop.subscribe(start=False)

    loop.trigger(subscription)
    await _drain()
    loop.unsubscribe(subscription)

    gate.set()
    await _drain()

    assert subscription.state == "stopped"
    assert store.get_snapshot(None) is None
    assert not any(isinstance(e, SnapshotCommittedEvent) for e in events)
    assert loop.trigger(subscription) is False


@pytest.mark.asyncio
async def test_no_ticks_after_unsubscribe(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
) -> None:
    transport.script("GET", "/api/orders", ok([]))
    loop = PollLoop(
        fetcher=OrderFetcher(transport),
        store=store,
        event_bus=bus,
        list_interval_s=0.01,
    )

    subscription = loop.subscribe()
    await asyncio.sleep(0.1)
    assert transport.calls_to("GET", "/api/orders") >= 2

    loop.unsubscribe(subscription)
    await _drain()
    calls = transport.calls_to("GET", "/api/orders")

    await asyncio.sleep(0.1)
    assert transport.calls_to("GET", "/api/orders") == calls

    await loop.aclose()


@pytest.mark.asyncio
async def test_list_poll_emits_appeared_after_baseline(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
    events: list[Any],
) -> None:
    transport.script(
        "GET",
        "/api/orders",
        ok([order_wire("1")]),
        ok([order_wire("2"), order_wire("1")]),
    )
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)
    subscription = loop.subscribe(start=False)

    await loop.poll_once(subscription)
    assert not any(isinstance(e, OrdersAppearedEvent) for e in events)

    await loop.poll_once(subscription)
    appeared = [e for e in events if isinstance(e, OrdersAppearedEvent)]
    assert len(appeared) == 1
    assert appeared[0].order_ids == ("2",)
    assert appeared[0].order_numbers == ("ORD-2",)


@pytest.mark.asyncio
async def test_single_order_poll_emits_status_change(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
    events: list[Any],
) -> None:
    transport.script(
        "GET",
        "/api/orders/7",
        ok(order_wire("7", "preparing", updated_minutes=1)),
        ok(order_wire("7", "ready", updated_minutes=2)),
    )
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)
    subscription = loop.subscribe("7", start=False)

    await loop.poll_once(subscription)
    await loop.poll_once(subscription)

    changes = [e for e in events if isinstance(e, OrderStatusChangedEvent)]
    assert len(changes) == 1
    assert (changes[0].prev_status, changes[0].next_status) == ("preparing", "ready")
    assert changes[0].key == "7"
    assert store.get_snapshot("7")[0].status == "ready"


@pytest.mark.asyncio
async def test_stale_poll_after_confirmed_transition_reports_no_regression(
    transport: FakeTransport,
    store: OrderStore,
    bus: EventBus,
    events: list[Any],
) -> None:
    transport.script("GET", "/api/orders", ok([order_wire("1", "preparing", updated_minutes=1)]))
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus)
    subscription = loop.subscribe(start=False)

    await loop.poll_once(subscription)
    assert store.merge_one(make_order("1", "ready", updated_minutes=5)) is True
    events.clear()

    await loop.poll_once(subscription)

    assert store.get_snapshot(None)[0].status == "ready"
    assert not any(isinstance(e, OrderStatusChangedEvent) for e in events)


def test_intervals_must_be_positive(transport: FakeTransport, store: OrderStore, bus: EventBus) -> None:
    with pytest.raises(ValueError):
        PollLoop(fetcher=OrderFetcher(transport), store=store, event_bus=bus, order_interval_s=0)


@pytest.mark.asyncio
async def test_poll_once_shares_the_inflight_slot(
    transport: FakeTransport,
    store: OrderStore,
) -> None:
    gate = asyncio.Event()
    transport.script("GET", "/api/orders", _gated(gate, ok([order_wire("1")])))
    loop = PollLoop(fetcher=OrderFetcher(transport), store=store)
    subscription = loop.subscribe(start=False)

    assert loop.trigger(subscription) is True
    await _drain()

    assert await loop.poll_once(subscription) is False
    assert subscription.skipped_ticks == 1
    assert transport.calls_to("GET", "/api/orders") == 1

    gate.set()
    await _drain()

    assert subscription.polls_succeeded == 1
    assert await loop.poll_once(subscription) is True
    assert transport.calls_to("GET", "/api/orders") == 2
