"""Error taxonomy for the order synchronization core.

Every error carries a stable ``kind`` string and a human-readable ``cause``
so that UI layers can choose their own wording. None of these errors is
fatal to the process.
"""

from __future__ import annotations

from typing import Any


class OrderTrackingError(Exception):
    """Base class for all order tracking failures."""

    kind: str = "order_tracking"

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Return the structured form consumed by UI layers."""
        return {"kind": self.kind, "cause": self.cause}


# ---------------------------------------------------------------------------
# Remote errors (raised by the fetcher)
# ---------------------------------------------------------------------------


class FetchError(OrderTrackingError):
    """Transport failure or timeout. Transient, retried by the next poll."""

    kind = "fetch"


class NotFoundError(OrderTrackingError):
    """The authority does not know the requested order id."""

    kind = "not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"order {order_id!r} not found")
        self.order_id = order_id


class ServerRejectedError(OrderTrackingError):
    """Authoritative refusal of a request (e.g. a transition conflict)."""

    kind = "server_rejected"

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["status_code"] = self.status_code
        return payload


# ---------------------------------------------------------------------------
# Local errors (never reach the network)
# ---------------------------------------------------------------------------


class InvalidStateError(OrderTrackingError):
    """A status value outside the closed state enumeration."""

    kind = "invalid_state"

    def __init__(self, value: object) -> None:
        super().__init__(f"unknown order status {value!r}")
        self.value = value


class IllegalTransitionError(OrderTrackingError):
    kind = "illegal_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"cannot move order from {current!r} to {target!r}")
        self.current = current
        self.target = target

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"current": self.current, "target": self.target})
        return payload


class TransitionInProgressError(OrderTrackingError):
    kind = "transition_in_progress"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"a status change for order {order_id!r} is already in flight")
        self.order_id = order_id


class UnexpectedPollError(OrderTrackingError):
    """A poll cycle failed for a reason outside the remote taxonomy."""

    kind = "unexpected"


REMOTE_ERRORS: tuple[type[OrderTrackingError], ...] = (
    FetchError,
    NotFoundError,
    ServerRejectedError,
)
