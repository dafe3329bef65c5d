"""Order tracker wiring.

Assembles the synchronization core (fetcher, store, poll loop, transition
controller) around one event bus and exposes the collaborator-facing API:
read access to snapshots, subscribe/unsubscribe, and operator transitions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from order_tracking.client.http_transport import HttpxTransport
from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.sinks.file_recorder import FileRecorderSink
from order_tracking.core.events.sinks.sink_logging import LoggingEventSink
from order_tracking.core.store.order_store import OrderStore, SnapshotKey, get_order_store
from order_tracking.core.sync.fetcher import OrderFetcher
from order_tracking.core.sync.poll_loop import PollLoop, Subscription
from order_tracking.core.sync.transition_controller import TransitionController
from order_tracking.metrics.prometheus_metrics import PollMetricsSink
from order_tracking.persistence.last_viewed import LastViewedOrderStore

if TYPE_CHECKING:
    from order_tracking.config.tracker_config import TrackerConfig
    from order_tracking.core.domain.types import Order, Snapshot
    from order_tracking.core.events.event_sink import EventSink
    from order_tracking.core.ports.transport import OrderTransport


class OrderTracker:
    """Facade over the order synchronization core.

    Invariant:
    - All components share one OrderStore and one EventBus.
    - The tracker owns the transport only when it built it.
    """

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        config: TrackerConfig,
        *,
        transport: OrderTransport | None = None,
        store: OrderStore | None = None,
        sinks: list[EventSink] | None = None,
    ) -> None:
        self.config = config

        self._owned_transport: HttpxTransport | None = None
        if transport is None:
            self._owned_transport = HttpxTransport(
                config.base_url,
                timeout_s=config.request_timeout_s,
            )
            transport = self._owned_transport

        self.metrics = PollMetricsSink()
        self.event_bus = self._build_event_bus(extra_sinks=sinks or [])

        self.store = store if store is not None else get_order_store()
        self.fetcher = OrderFetcher(transport, timeout_s=config.request_timeout_s)
        self.poll_loop = PollLoop(
            fetcher=self.fetcher,
            store=self.store,
            event_bus=self.event_bus,
            list_interval_s=config.list_poll_interval_s,
            order_interval_s=config.order_poll_interval_s,
        )
        self.transitions = TransitionController(
            fetcher=self.fetcher,
            store=self.store,
            event_bus=self.event_bus,
        )
        self.last_viewed = LastViewedOrderStore(config.state_path)

    def _build_event_bus(self, *, extra_sinks: list[Any]) -> EventBus:
        logger = logging.getLogger("bus")

        sinks: list[Any] = [LoggingEventSink(logger), self.metrics]
        if self.config.event_log_path is not None:
            sinks.append(FileRecorderSink(self.config.event_log_path))
        sinks.extend(extra_sinks)

        return EventBus(sinks=sinks)

    # ---- Subscriptions ----
    def watch_all(self) -> Subscription:
        """Operator console view: poll the full order list."""
        return self.poll_loop.subscribe(None)

    def track_order(self, order_id: str | None = None) -> Subscription | None:
        """Customer tracker view: poll one order.

        Without ``order_id`` the last tracked order is resumed. Returns None
        when there is nothing to track.
        """
        resolved = self.last_viewed.resolve(order_id)
        if resolved is None:
            return None
        return self.poll_loop.subscribe(resolved)

    def stop(self, subscription: Subscription) -> None:
        self.poll_loop.unsubscribe(subscription)

    # ---- Read access ----
    def snapshot(self, key: SnapshotKey = None) -> Snapshot | None:
        return self.store.get_snapshot(key)

    # ---- Operator actions ----
    async def advance(self, order_id: str, target_state: str) -> Order:
        """Transition an order, using the stored copy when one is available."""
        order = self.store.get_order(order_id)
        if order is None:
            order = await self.fetcher.fetch_one(order_id)
        return await self.transitions.request_transition(order, target_state)

    async def aclose(self) -> None:
        await self.poll_loop.aclose()
        self.event_bus.close()
        if self._owned_transport is not None:
            await self._owned_transport.aclose()
