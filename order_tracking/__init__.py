"""Public API for the order_tracking package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------
from order_tracking.config.tracker_config import TrackerConfig

# ----------------------------------------------------------------------
# Domain
# ----------------------------------------------------------------------
from order_tracking.core.domain.change_detector import SnapshotDiff, StatusChange, diff
from order_tracking.core.domain.errors import (
    FetchError,
    IllegalTransitionError,
    InvalidStateError,
    NotFoundError,
    OrderTrackingError,
    ServerRejectedError,
    TransitionInProgressError,
)
from order_tracking.core.domain.order_state_machine import (
    ORDER_FORWARD_SEQUENCE,
    ORDER_STATES,
    ORDER_TERMINAL_STATES,
    OrderStatus,
    allowed_next_states,
    index_of,
    is_terminal_state,
    is_valid_transition,
    progress_ratio,
)
from order_tracking.core.domain.summary import SnapshotSummary, summarize_snapshot
from order_tracking.core.domain.types import Customer, Order, OrderItem, Snapshot

# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------
from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.events import (
    OrdersAppearedEvent,
    OrderStatusChangedEvent,
    PollFailedEvent,
    SnapshotCommittedEvent,
    TransitionConfirmedEvent,
    TransitionFailedEvent,
)
from order_tracking.core.events.sinks.callback_sink import CallbackSink

# ----------------------------------------------------------------------
# Synchronization core
# ----------------------------------------------------------------------
from order_tracking.core.ports.transport import OrderTransport, TransportResponse
from order_tracking.core.store.order_store import OrderStore, get_order_store, reset_order_store
from order_tracking.core.sync.fetcher import OrderFetcher
from order_tracking.core.sync.poll_loop import PollLoop, Subscription
from order_tracking.core.sync.transition_controller import TransitionController
from order_tracking.tracker import OrderTracker

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Facade / config
    "OrderTracker",
    "TrackerConfig",

    # Domain
    "Order",
    "OrderItem",
    "Customer",
    "Snapshot",
    "OrderStatus",
    "ORDER_STATES",
    "ORDER_FORWARD_SEQUENCE",
    "ORDER_TERMINAL_STATES",
    "allowed_next_states",
    "index_of",
    "is_terminal_state",
    "is_valid_transition",
    "progress_ratio",
    "diff",
    "SnapshotDiff",
    "StatusChange",
    "SnapshotSummary",
    "summarize_snapshot",

    # Errors
    "OrderTrackingError",
    "FetchError",
    "NotFoundError",
    "ServerRejectedError",
    "IllegalTransitionError",
    "InvalidStateError",
    "TransitionInProgressError",

    # Events
    "EventBus",
    "CallbackSink",
    "OrdersAppearedEvent",
    "OrderStatusChangedEvent",
    "SnapshotCommittedEvent",
    "PollFailedEvent",
    "TransitionConfirmedEvent",
    "TransitionFailedEvent",

    # Core
    "OrderTransport",
    "TransportResponse",
    "OrderFetcher",
    "OrderStore",
    "get_order_store",
    "reset_order_store",
    "PollLoop",
    "Subscription",
    "TransitionController",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("order-tracking")
except PackageNotFoundError:
    __version__ = "0.0.0"
