"""
Callback event sink.

Adapts a plain callable (e.g. a UI notification hook) to the sink protocol.
"""
from __future__ import annotations

from typing import Any, Callable


class CallbackSink:
    """Forwards events to ``callback``, optionally filtered by event type."""

    def __init__(
        self,
        callback: Callable[[Any], None],
        *,
        event_types: tuple[type, ...] | None = None,
    ) -> None:
        self._callback = callback
        self._event_types = event_types

    def on_event(self, event: Any) -> None:
        if self._event_types is not None and not isinstance(event, self._event_types):
            return
        self._callback(event)
