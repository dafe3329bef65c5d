"""
Logging event sink.
"""
from __future__ import annotations

import logging
from typing import Any

from order_tracking.core.events.events import PollFailedEvent


class LoggingEventSink:
    """Logs domain events using the standard logging module.

    Poll failures are logged at WARNING; every other event at INFO.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def on_event(self, event: Any) -> None:
        level = logging.WARNING if isinstance(event, PollFailedEvent) else logging.INFO
        self._logger.log(
            level,
            "domain_event %s",
            type(event).__name__,
            extra={"event": event},
        )
