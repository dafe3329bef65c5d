"""
Domain event models.

These events represent immutable facts observed while synchronizing orders.
They are consumed by loggers, recorders, metrics, and notification layers.

``key`` identifies the snapshot a poll event belongs to: None for the
all-orders view, or the order id of a single-order view.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class OrdersAppearedEvent:
    ts_ns: int
    key: str | None

    order_ids: tuple[str, ...]
    order_numbers: tuple[str, ...]


@dataclass(slots=True)
class OrderStatusChangedEvent:
    ts_ns: int
    key: str | None

    order_id: str
    order_number: str

    prev_status: str
    next_status: str


@dataclass(slots=True)
class SnapshotCommittedEvent:
    ts_ns: int
    key: str | None

    size: int


@dataclass(slots=True)
class PollFailedEvent:
    ts_ns: int
    key: str | None

    error_kind: str
    cause: str

    consecutive_failures: int
    total_failures: int


@dataclass(slots=True)
class TransitionConfirmedEvent:
    ts_ns: int
    order_id: str

    prev_status: str
    next_status: str


@dataclass(slots=True)
class TransitionFailedEvent:
    ts_ns: int
    order_id: str

    target_status: str
    error_kind: str
    cause: str
