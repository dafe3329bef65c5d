"""Subscription-scoped polling of the order authority.

Invariants:
- One live subscription owns exactly one timer task.
- At most one fetch is in flight per subscription. A timer tick that finds a
  fetch outstanding is skipped, never queued, so results are applied to the
  store in the order their fetches were issued.
- A failed poll never clears or corrupts the committed snapshot; stale data
  stays visible and the loop keeps its cadence (no backoff).
- After unsubscribe no further tick fires. A fetch already in flight is not
  aborted, but its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal

from order_tracking.core.domain.change_detector import SnapshotDiff, diff
from order_tracking.core.domain.errors import REMOTE_ERRORS, OrderTrackingError, UnexpectedPollError
from order_tracking.core.domain.types import Order
from order_tracking.core.events.event_bus import EventBus
from order_tracking.core.events.events import (
    OrdersAppearedEvent,
    OrderStatusChangedEvent,
    PollFailedEvent,
    SnapshotCommittedEvent,
)
from order_tracking.core.events.sinks.null_event_bus import NullEventBus
from order_tracking.core.store.order_store import OrderStore, SnapshotKey
from order_tracking.core.sync.fetcher import OrderFetcher

LOGGER = logging.getLogger(__name__)

DEFAULT_LIST_INTERVAL_S: float = 30.0
DEFAULT_ORDER_INTERVAL_S: float = 10.0

PollState = Literal["idle", "polling", "failed", "stopped"]


@dataclass(slots=True, eq=False)
class Subscription:
    """Live binding between a consumer and a recurring poll.

    key is None for the all-orders view, or the order id being tracked.
    """

    key: SnapshotKey
    interval_s: float

    state: PollState = "idle"

    polls_succeeded: int = 0
    consecutive_failures: int = 0
    total_failures: int = 0
    skipped_ticks: int = 0
    last_error: OrderTrackingError | None = None

    _timer: asyncio.Task[None] | None = field(default=None, repr=False)
    _inflight: asyncio.Task[bool] | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self.state != "stopped"

    @property
    def fetch_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()


class PollLoop:
    """Drives the fetcher per subscription and commits results to the store."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        *,
        fetcher: OrderFetcher,
        store: OrderStore,
        event_bus: EventBus | None = None,
        list_interval_s: float = DEFAULT_LIST_INTERVAL_S,
        order_interval_s: float = DEFAULT_ORDER_INTERVAL_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        if list_interval_s <= 0 or order_interval_s <= 0:
            raise ValueError("poll intervals must be positive")

        self._fetcher = fetcher
        self._store = store
        self._event_bus = event_bus if event_bus is not None else NullEventBus()

        # Independent cadences; neither is derived from the other.
        self._list_interval_s = float(list_interval_s)
        self._order_interval_s = float(order_interval_s)

        self._sleep = sleep
        self._clock_ns = clock_ns
        self._subscriptions: list[Subscription] = []

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._subscriptions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def subscribe(self, order_id: str | None = None, *, start: bool = True) -> Subscription:
        """Begin observing all orders (``order_id=None``) or one order.

        With ``start=True`` (the default) the first poll is issued right away
        and then every interval; this requires a running event loop. With
        ``start=False`` the caller drives polls via ``poll_once``/``trigger``.
        """
        interval = self._list_interval_s if order_id is None else self._order_interval_s
        subscription = Subscription(key=order_id, interval_s=interval)
        self._subscriptions.append(subscription)

        if start:
            subscription._timer = asyncio.create_task(  # pylint: disable=protected-access
                self._run_timer(subscription),
                name=f"poll-timer[{order_id or '*'}]",
            )

        LOGGER.info(
            "Subscription started",
            extra={"key": order_id, "interval_s": interval, "timer": start},
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop observing. Effective immediately for scheduling."""
        if not subscription.active:
            return

        subscription.state = "stopped"
        timer = subscription._timer  # pylint: disable=protected-access
        if timer is not None:
            timer.cancel()
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

        LOGGER.info("Subscription stopped", extra={"key": subscription.key})

    async def aclose(self) -> None:
        """Unsubscribe everything and wait for timers and in-flight fetches to settle."""
        pending: list[asyncio.Task] = []
        for subscription in list(self._subscriptions):
            # pylint: disable=protected-access
            for task in (subscription._timer, subscription._inflight):
                if task is not None:
                    pending.append(task)
            self.unsubscribe(subscription)

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _run_timer(self, subscription: Subscription) -> None:
        while subscription.active:
            self.trigger(subscription)
            await self._sleep(subscription.interval_s)

    def trigger(self, subscription: Subscription) -> bool:
        """Issue a poll now unless one is already in flight.

        Returns True if a fetch was started, False if the tick was skipped.
        """
        if not subscription.active:
            return False

        if subscription.fetch_in_flight:
            self._skip(subscription)
            return False

        self._start_poll(subscription)
        return True

    async def poll_once(self, subscription: Subscription) -> bool:
        """Run one fetch/diff/commit cycle now and wait for it.

        Returns True if a snapshot was committed. Shares the in-flight slot
        with timer ticks: if a fetch is already outstanding this call is
        skipped like a tick and returns False.

        Remote failures (FetchError, NotFoundError, ServerRejectedError) are
        absorbed into the subscription's failure counters and a
        PollFailedEvent; they never propagate.
        """
        if not subscription.active:
            return False

        if subscription.fetch_in_flight:
            self._skip(subscription)
            return False

        return await self._start_poll(subscription)

    def _skip(self, subscription: Subscription) -> None:
        subscription.skipped_ticks += 1
        LOGGER.debug(
            "Poll tick skipped, fetch still in flight",
            extra={"key": subscription.key, "skipped_ticks": subscription.skipped_ticks},
        )

    def _start_poll(self, subscription: Subscription) -> asyncio.Task[bool]:
        task = asyncio.create_task(
            self._guarded_poll(subscription),
            name=f"poll-fetch[{subscription.key or '*'}]",
        )
        subscription._inflight = task  # pylint: disable=protected-access
        return task

    async def _guarded_poll(self, subscription: Subscription) -> bool:
        try:
            return await self._poll(subscription)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Not a remote failure, but counted and reported as one.
            LOGGER.exception("Poll failed unexpectedly", extra={"key": subscription.key})
            if subscription.active:
                self._record_failure(subscription, UnexpectedPollError(repr(exc)))
            return False

    async def _poll(self, subscription: Subscription) -> bool:
        if not subscription.active:
            return False

        subscription.state = "polling"
        try:
            orders = await self._fetch(subscription.key)
        except REMOTE_ERRORS as exc:
            if not subscription.active:
                LOGGER.debug("Discarding failure for stopped subscription", extra={"key": subscription.key})
                return False
            self._record_failure(subscription, exc)
            return False

        if not subscription.active:
            LOGGER.debug("Discarding result for stopped subscription", extra={"key": subscription.key})
            return False

        prior = self._store.get_snapshot(subscription.key)
        committed = self._store.replace_snapshot(subscription.key, orders)
        changes = diff(prior, committed)

        subscription.state = "idle"
        subscription.polls_succeeded += 1
        subscription.consecutive_failures = 0
        subscription.last_error = None

        self._publish(subscription.key, len(committed), changes)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _fetch(self, key: SnapshotKey) -> list[Order]:
        if key is None:
            return await self._fetcher.fetch_all()
        return [await self._fetcher.fetch_one(key)]

    def _record_failure(self, subscription: Subscription, exc: OrderTrackingError) -> None:
        subscription.state = "failed"
        subscription.consecutive_failures += 1
        subscription.total_failures += 1
        subscription.last_error = exc

        self._event_bus.emit(
            PollFailedEvent(
                ts_ns=self._clock_ns(),
                key=subscription.key,
                error_kind=exc.kind,
                cause=exc.cause,
                consecutive_failures=subscription.consecutive_failures,
                total_failures=subscription.total_failures,
            )
        )

    def _publish(self, key: SnapshotKey, size: int, changes: SnapshotDiff) -> None:
        ts_ns = self._clock_ns()

        self._event_bus.emit(SnapshotCommittedEvent(ts_ns=ts_ns, key=key, size=size))

        if changes.appeared:
            self._event_bus.emit(
                OrdersAppearedEvent(
                    ts_ns=ts_ns,
                    key=key,
                    order_ids=tuple(order.id for order in changes.appeared),
                    order_numbers=tuple(order.order_number for order in changes.appeared),
                )
            )

        for change in changes.status_changed:
            self._event_bus.emit(
                OrderStatusChangedEvent(
                    ts_ns=ts_ns,
                    key=key,
                    order_id=change.order.id,
                    order_number=change.order.order_number,
                    prev_status=change.previous_status,
                    next_status=change.order.status,
                )
            )
