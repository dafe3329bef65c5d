"""
Semantic test: change detection between snapshots.

Invariant:
The first observation of a subscription is a baseline and yields no
changes. Afterwards, orders are matched by identity: unseen ids are
"appeared" (server order preserved), known ids with a different status
are "status_changed" carrying the prior status.
"""

from __future__ import annotations

from conftest import make_order

from order_tracking.core.domain.change_detector import diff


def test_baseline_is_suppressed() -> None:
    current = (make_order("1"), make_order("2", "confirmed"))

    for previous in (None, (), []):
        result = diff(previous, current)
        assert result.appeared == ()
        assert result.status_changed == ()
        assert result.is_empty


def test_identical_snapshots_yield_no_change() -> None:
    snapshot = (make_order("1"), make_order("2", "ready"), make_order("3", "delivered"))

    result = diff(snapshot, snapshot)

    assert result.is_empty


def test_scenario_first_load_then_new_order() -> None:
    first = (make_order("1"),)
    assert diff([], first).appeared == ()

    second = (make_order("2"), make_order("1"))
    result = diff(first, second)

    assert [o.id for o in result.appeared] == ["2"]
    assert result.status_changed == ()


def test_appeared_keeps_server_order() -> None:
    previous = (make_order("1"),)
    current = (make_order("4"), make_order("3"), make_order("2"), make_order("1"))

    result = diff(previous, current)

    assert [o.id for o in result.appeared] == ["4", "3", "2"]


def test_status_change_carries_previous_status() -> None:
    previous = (make_order("1", "preparing"), make_order("2", "pending"))
    current = (make_order("1", "ready", updated_minutes=5), make_order("2", "pending"))

    result = diff(previous, current)

    assert result.appeared == ()
    assert len(result.status_changed) == 1
    change = result.status_changed[0]
    assert change.order.id == "1"
    assert change.order.status == "ready"
    assert change.previous_status == "preparing"


def test_reordering_is_not_a_change() -> None:
    previous = (make_order("1"), make_order("2"), make_order("3"))
    current = tuple(reversed(previous))

    assert diff(previous, current).is_empty


def test_removed_orders_are_not_reported() -> None:
    previous = (make_order("1"), make_order("2"))
    current = (make_order("2"),)

    assert diff(previous, current).is_empty


def test_diff_is_deterministic() -> None:
    previous = (make_order("1", "pending"), make_order("2", "confirmed"))
    current = (make_order("3"), make_order("1", "confirmed", updated_minutes=1), make_order("2", "confirmed"))

    assert diff(previous, current) == diff(previous, current)
