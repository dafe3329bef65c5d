from __future__ import annotations

from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from order_tracking.core.events.events import (
    OrdersAppearedEvent,
    OrderStatusChangedEvent,
    PollFailedEvent,
    SnapshotCommittedEvent,
    TransitionConfirmedEvent,
    TransitionFailedEvent,
)


def _view(key: str | None) -> str:
    return "list" if key is None else "order"


class PollMetricsSink:
    """Event sink maintaining Prometheus metrics for the synchronization core.

    Metrics live in a private CollectorRegistry so several trackers (and
    tests) can coexist in one process. Expose them with ``render()`` or by
    passing ``registry`` to a prometheus_client exporter.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self._polls_succeeded = Counter(
            "order_tracking_polls_succeeded",
            "Polls that committed a snapshot",
            labelnames=["view"],
            registry=self.registry,
        )
        self._polls_failed = Counter(
            "order_tracking_polls_failed",
            "Polls that failed, by error kind",
            labelnames=["view", "kind"],
            registry=self.registry,
        )
        self._consecutive_failures = Gauge(
            "order_tracking_consecutive_poll_failures",
            "Current run of failed polls",
            labelnames=["view"],
            registry=self.registry,
        )
        self._snapshot_size = Gauge(
            "order_tracking_snapshot_size",
            "Orders in the last committed snapshot",
            labelnames=["view"],
            registry=self.registry,
        )
        self._orders_appeared = Counter(
            "order_tracking_orders_appeared",
            "Orders first seen after the baseline poll",
            registry=self.registry,
        )
        self._status_changes = Counter(
            "order_tracking_status_changes",
            "Status changes observed by polling",
            labelnames=["next_status"],
            registry=self.registry,
        )
        self._transitions = Counter(
            "order_tracking_transitions",
            "Operator transitions by outcome",
            labelnames=["outcome"],
            registry=self.registry,
        )

    def on_event(self, event: Any) -> None:
        if isinstance(event, SnapshotCommittedEvent):
            view = _view(event.key)
            self._polls_succeeded.labels(view=view).inc()
            self._consecutive_failures.labels(view=view).set(0)
            self._snapshot_size.labels(view=view).set(event.size)
        elif isinstance(event, PollFailedEvent):
            view = _view(event.key)
            self._polls_failed.labels(view=view, kind=event.error_kind).inc()
            self._consecutive_failures.labels(view=view).set(event.consecutive_failures)
        elif isinstance(event, OrdersAppearedEvent):
            self._orders_appeared.inc(len(event.order_ids))
        elif isinstance(event, OrderStatusChangedEvent):
            self._status_changes.labels(next_status=event.next_status).inc()
        elif isinstance(event, TransitionConfirmedEvent):
            self._transitions.labels(outcome="confirmed").inc()
        elif isinstance(event, TransitionFailedEvent):
            self._transitions.labels(outcome=event.error_kind).inc()

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Return the current value of one sample (e.g. ``..._total``)."""
        return self.registry.get_sample_value(name, labels or {})

    def render(self) -> str:
        """Return the metrics in Prometheus text exposition format."""
        return generate_latest(self.registry).decode("utf-8")
