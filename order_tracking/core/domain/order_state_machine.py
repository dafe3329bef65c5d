"""
Order status state machine definitions.

This module defines the canonical order statuses and the forward transitions
an operator may request. It is pure: no I/O, no state.

The client-side graph is a UX optimization, not a security boundary. The
order authority remains the sole arbiter of transition legality.
"""

from __future__ import annotations

from typing import Literal

from order_tracking.core.domain.errors import InvalidStateError

OrderStatus = Literal[
    "pending",
    "confirmed",
    "preparing",
    "ready",
    "out-for-delivery",
    "delivered",
    "cancelled",
]

# Canonical forward sequence, used for progress rendering.
ORDER_FORWARD_SEQUENCE: tuple[str, ...] = (
    "pending",
    "confirmed",
    "preparing",
    "ready",
    "out-for-delivery",
    "delivered",
)

ORDER_STATES: frozenset[str] = frozenset(ORDER_FORWARD_SEQUENCE) | {"cancelled"}

# Terminal order states: once reached, the order accepts no further change.
ORDER_TERMINAL_STATES: frozenset[str] = frozenset(
    {
        "delivered",
        "cancelled",
    }
)

# Allowed order status transitions.
#
# Key   : current status
# Value : set of allowed next statuses
#
# Notes:
# - cancelled is reachable until the order leaves the kitchen.
# - Self transitions are not allowed.
ORDER_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"preparing", "cancelled"}),
    "preparing": frozenset({"ready", "cancelled"}),
    "ready": frozenset({"out-for-delivery", "cancelled"}),
    "out-for-delivery": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


def validate_state(state: object) -> str:
    """Return ``state`` unchanged if it is a known status, else raise InvalidStateError."""
    if not isinstance(state, str) or state not in ORDER_STATES:
        raise InvalidStateError(state)
    return state


def allowed_next_states(current: str) -> frozenset[str]:
    """Return the statuses reachable from ``current`` in one step."""
    return ORDER_ALLOWED_TRANSITIONS[validate_state(current)]


def is_terminal_state(state: str) -> bool:
    """Return True if the given status is terminal."""
    return validate_state(state) in ORDER_TERMINAL_STATES


def is_valid_transition(prev_state: str, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    return validate_state(next_state) in allowed_next_states(prev_state)


def index_of(state: str) -> int | None:
    """Position of ``state`` in the forward sequence.

    ``cancelled`` has no position and yields None; rendering a cancelled
    order's progress is left to the caller.
    """
    validate_state(state)
    if state not in ORDER_FORWARD_SEQUENCE:
        return None
    return ORDER_FORWARD_SEQUENCE.index(state)


def progress_ratio(state: str) -> float | None:
    """Fraction of the forward sequence completed (0.0 for pending, 1.0 for delivered)."""
    idx = index_of(state)
    if idx is None:
        return None
    return idx / (len(ORDER_FORWARD_SEQUENCE) - 1)
