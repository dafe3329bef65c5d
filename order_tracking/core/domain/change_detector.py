"""Snapshot change detection.

Given the previous and current snapshots of one subscription, compute which
orders appeared and which changed status. The result drives notifications.

The detector is pure and deterministic: the same two snapshots always yield
the same diff. Orders are matched by identity, never by position, so a
change in the authority's sort order cannot produce phantom "new" orders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from order_tracking.core.domain.types import Order


@dataclass(frozen=True, slots=True)
class StatusChange:
    order: Order
    previous_status: str


@dataclass(frozen=True, slots=True)
class SnapshotDiff:
    """Delta between two consecutive snapshots.

    - appeared: orders absent from the previous snapshot, in server order
    - status_changed: orders present in both whose status differs
    """

    appeared: tuple[Order, ...] = field(default_factory=tuple)
    status_changed: tuple[StatusChange, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.appeared and not self.status_changed


EMPTY_DIFF = SnapshotDiff()


def diff(previous: Sequence[Order] | None, current: Sequence[Order]) -> SnapshotDiff:
    """Compute the delta from ``previous`` to ``current``.

    A missing or empty ``previous`` is the baseline: the first observation of
    a subscription is not itself a change, so it yields an empty diff.
    """
    if not previous:
        return EMPTY_DIFF

    prior_by_id: dict[str, Order] = {order.id: order for order in previous}

    appeared: list[Order] = []
    status_changed: list[StatusChange] = []
    for order in current:
        prior = prior_by_id.get(order.id)
        if prior is None:
            appeared.append(order)
        elif prior.status != order.status:
            status_changed.append(StatusChange(order=order, previous_status=prior.status))

    if not appeared and not status_changed:
        return EMPTY_DIFF
    return SnapshotDiff(appeared=tuple(appeared), status_changed=tuple(status_changed))
