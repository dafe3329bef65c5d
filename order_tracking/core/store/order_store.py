"""Process-wide cache of the last known-good order snapshots.

The store is the single source of truth for rendering. Snapshots are keyed
by subscription key: None for the all-orders view, or an order id for a
single-order view. Only the poll loop and the transition controller write.

Mutation happens on the event loop between suspension points, so no locking
is modeled. Races between a poll commit and a transition reconciliation for
the same order resolve by last-write-wins on ``updated_at``: an incoming
order that is not strictly newer than the stored copy is dropped.
"""

from __future__ import annotations

import logging
from typing import Iterable

from order_tracking.core.domain.types import Order, Snapshot

LOGGER = logging.getLogger(__name__)

SnapshotKey = str | None


def _newer(incoming: Order, stored: Order) -> bool:
    return incoming.updated_at > stored.updated_at


class OrderStore:
    """Keyed snapshot cache with last-write-wins reconciliation."""

    def __init__(self) -> None:
        self._snapshots: dict[SnapshotKey, Snapshot] = {}

    # ---- Read access ----
    def get_snapshot(self, key: SnapshotKey) -> Snapshot | None:
        """Return the snapshot for ``key``, or None if nothing was committed yet."""
        return self._snapshots.get(key)

    def get_order(self, order_id: str) -> Order | None:
        """Return the freshest stored copy of an order across all snapshots."""
        best: Order | None = None
        for snapshot in self._snapshots.values():
            for order in snapshot:
                if order.id == order_id and (best is None or _newer(order, best)):
                    best = order
        return best

    def keys(self) -> list[SnapshotKey]:
        return list(self._snapshots.keys())

    # ---- Mutation ----
    def replace_snapshot(self, key: SnapshotKey, orders: Iterable[Order]) -> Snapshot:
        """Replace the snapshot for ``key`` wholesale and return what was committed.

        Order and membership follow ``orders``. For an order already stored
        under ``key`` with an ``updated_at`` at least as recent, the stored
        copy is kept, so a slow poll cannot clobber a confirmed transition.
        """
        prior = self._snapshots.get(key) or ()
        prior_by_id = {order.id: order for order in prior}

        committed: list[Order] = []
        kept_stored = 0
        for incoming in orders:
            stored = prior_by_id.get(incoming.id)
            if stored is not None and not _newer(incoming, stored):
                committed.append(stored)
                if stored is not incoming and stored.status != incoming.status:
                    kept_stored += 1
                continue
            committed.append(incoming)

        if kept_stored:
            LOGGER.debug(
                "Dropped stale poll entries",
                extra={"key": key, "dropped": kept_stored},
            )

        snapshot: Snapshot = tuple(committed)
        self._snapshots[key] = snapshot
        return snapshot

    def merge_one(self, order: Order) -> bool:
        """Upsert ``order`` by identity into every snapshot that contains it.

        Returns True if at least one snapshot took the write.
        """
        applied = False
        for key, snapshot in self._snapshots.items():
            for idx, stored in enumerate(snapshot):
                if stored.id != order.id:
                    continue
                if _newer(order, stored):
                    self._snapshots[key] = snapshot[:idx] + (order,) + snapshot[idx + 1:]
                    applied = True
                break

        if not applied:
            LOGGER.debug("merge_one dropped", extra={"order_id": order.id})
        return applied

    def clear(self) -> None:
        self._snapshots.clear()


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_STORE: OrderStore | None = None


def get_order_store() -> OrderStore:
    """Return the process-wide store, creating it on first use."""
    global _STORE  # pylint: disable=global-statement
    if _STORE is None:
        _STORE = OrderStore()
    return _STORE


def reset_order_store() -> None:
    """Clear the process-wide store (explicit application reset)."""
    if _STORE is not None:
        _STORE.clear()
