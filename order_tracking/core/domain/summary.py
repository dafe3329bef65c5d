from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from order_tracking.core.domain.types import Order

IN_PROGRESS_STATES: frozenset[str] = frozenset({"preparing", "ready", "out-for-delivery"})


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SnapshotSummary:
    total: int
    pending: int
    in_progress: int  # preparing + ready + out-for-delivery
    delivered: int
    cancelled: int


# ---------------------------------------------------------------------------
# Summary builder
# ---------------------------------------------------------------------------

def summarize_snapshot(snapshot: Sequence[Order] | None) -> SnapshotSummary:
    """Count orders per console bucket. A missing snapshot counts as empty."""
    orders = snapshot or ()
    by_status = Counter(order.status for order in orders)

    return SnapshotSummary(
        total=len(orders),
        pending=by_status["pending"],
        in_progress=sum(by_status[state] for state in IN_PROGRESS_STATES),
        delivered=by_status["delivered"],
        cancelled=by_status["cancelled"],
    )
