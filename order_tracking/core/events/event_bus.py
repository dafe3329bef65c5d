"""
Simple synchronous event bus.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from order_tracking.core.events.event_sink import EventSink

LOGGER = logging.getLogger(__name__)


class EventBus:
    """Dispatches events to registered sinks.

    A failing sink is logged and skipped; observers must never break the
    polling core.
    """

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    def register(self, sink: EventSink) -> None:
        """Register a new sink."""
        self._sinks.append(sink)

    def unregister(self, sink: EventSink) -> None:
        """Remove a previously registered sink (no-op if unknown)."""
        if sink in self._sinks:
            self._sinks.remove(sink)

    def emit(self, event: Any) -> None:
        """Emit an event to all sinks."""
        for sink in list(self._sinks):
            try:
                sink.on_event(event)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception(
                    "Event sink failed",
                    extra={"sink": type(sink).__name__, "event_type": type(event).__name__},
                )

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
