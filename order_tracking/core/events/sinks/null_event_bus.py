"""
Silent event bus.

Default bus for the poll loop and the transition controller when the caller
wires no observers: the core behaves identically, nobody is notified.
"""
from __future__ import annotations

from typing import Any

from order_tracking.core.events.event_bus import EventBus


class NullEventBus(EventBus):
    """EventBus without sinks. ``register`` is ignored so it stays silent."""

    def __init__(self) -> None:
        super().__init__(sinks=())

    def register(self, sink: Any) -> None:
        return

    def emit(self, event: Any) -> None:
        return
