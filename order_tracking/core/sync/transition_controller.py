"""Operator-initiated status transitions.

Validation happens locally before any network call. While a request is in
flight the order carries a pending marker in a side channel; the store's
authoritative status is only touched once the authority confirms, via
last-write-wins reconciliation.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from order_tracking.core.domain.errors import (
    REMOTE_ERRORS,
    IllegalTransitionError,
    TransitionInProgressError,
)
from order_tracking.core.domain.order_state_machine import allowed_next_states, validate_state
from order_tracking.core.domain.types import Order
from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.events import TransitionConfirmedEvent, TransitionFailedEvent
from order_tracking.core.events.sinks.null_event_bus import NullEventBus
from order_tracking.core.store.order_store import OrderStore
from order_tracking.core.sync.fetcher import OrderFetcher

LOGGER = logging.getLogger(__name__)


class TransitionController:
    """Validates, executes, and reconciles operator status changes."""

    def __init__(
        self,
        *,
        fetcher: OrderFetcher,
        store: OrderStore,
        event_bus: EventBus | None = None,
        clock_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._event_bus = event_bus if event_bus is not None else NullEventBus()
        self._clock_ns = clock_ns

        # order id -> requested target status, for busy indicators.
        self._pending: dict[str, str] = {}

    # ---- Pending side channel ----
    def is_pending(self, order_id: str) -> bool:
        return order_id in self._pending

    def pending_target(self, order_id: str) -> str | None:
        return self._pending.get(order_id)

    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    # ---- Operations ----
    async def request_transition(self, order: Order, target_state: str) -> Order:
        """Move ``order`` to ``target_state`` and return the authoritative order.

        Raises:
            InvalidStateError: either status is outside the state enumeration.
            IllegalTransitionError: the graph forbids the move (no request sent).
            TransitionInProgressError: a request for this order is outstanding.
            FetchError / NotFoundError / ServerRejectedError: from the authority,
                re-raised verbatim. The store is left untouched.
        """
        validate_state(target_state)
        if target_state not in allowed_next_states(order.status):
            raise IllegalTransitionError(order.status, target_state)

        if order.id in self._pending:
            raise TransitionInProgressError(order.id)

        self._pending[order.id] = target_state
        LOGGER.info(
            "Transition requested",
            extra={"order_id": order.id, "prev_status": order.status, "target_status": target_state},
        )

        try:
            confirmed = await self._fetcher.request_transition(order.id, target_state)
        except REMOTE_ERRORS as exc:
            self._event_bus.emit(
                TransitionFailedEvent(
                    ts_ns=self._clock_ns(),
                    order_id=order.id,
                    target_status=target_state,
                    error_kind=exc.kind,
                    cause=exc.cause,
                )
            )
            raise
        finally:
            self._pending.pop(order.id, None)

        merged = self._store.merge_one(confirmed)
        LOGGER.info(
            "Transition confirmed",
            extra={"order_id": confirmed.id, "status": confirmed.status, "merged": merged},
        )

        self._event_bus.emit(
            TransitionConfirmedEvent(
                ts_ns=self._clock_ns(),
                order_id=confirmed.id,
                prev_status=order.status,
                next_status=confirmed.status,
            )
        )
        return confirmed
