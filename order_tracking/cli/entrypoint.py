from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from order_tracking.config.tracker_config import TrackerConfig
from order_tracking.core.domain.errors import OrderTrackingError
from order_tracking.core.domain.order_state_machine import ORDER_STATES, progress_ratio
from order_tracking.core.domain.summary import summarize_snapshot
from order_tracking.core.events.events import (
    OrdersAppearedEvent,
    OrderStatusChangedEvent,
    PollFailedEvent,
)
from order_tracking.core.events.sinks.callback_sink import CallbackSink
from order_tracking.persistence.last_viewed import LastViewedOrderStore
from order_tracking.tracker import OrderTracker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config(args: argparse.Namespace) -> TrackerConfig:
    if args.config is not None:
        cfg = TrackerConfig.from_json_file(args.config)
        if args.base_url:
            cfg = cfg.model_copy(update={"base_url": args.base_url})
        return cfg
    return TrackerConfig.from_env(base_url=args.base_url)


def _print_notification(event: Any) -> None:
    if isinstance(event, OrdersAppearedEvent):
        count = len(event.order_ids)
        print(f"{count} new order{'s' if count > 1 else ''} received: {', '.join(event.order_numbers)}")
    elif isinstance(event, OrderStatusChangedEvent):
        print(
            f"Order {event.order_number}: "
            f"{event.prev_status.replace('-', ' ')} -> {event.next_status.replace('-', ' ')}"
        )
    elif isinstance(event, PollFailedEvent):
        print(f"Refresh failed ({event.cause}); showing last known data", file=sys.stderr)


def _print_status(tracker: OrderTracker, key: str | None) -> None:
    snapshot = tracker.snapshot(key)
    if snapshot is None:
        return
    if key is None:
        summary = summarize_snapshot(snapshot)
        print(
            f"total={summary.total} pending={summary.pending} "
            f"in_progress={summary.in_progress} delivered={summary.delivered} "
            f"cancelled={summary.cancelled}"
        )
        return
    for order in snapshot:
        ratio = progress_ratio(order.status)
        progress = "cancelled" if ratio is None else f"{ratio:.0%}"
        print(f"Order {order.order_number}: {order.status} ({progress})")


async def _watch(tracker: OrderTracker, key: str | None, duration: float | None) -> int:
    if key is None:
        subscription = tracker.watch_all()
    else:
        subscription = tracker.track_order(key)

    try:
        if duration is None:
            while True:
                await asyncio.sleep(subscription.interval_s)
                _print_status(tracker, subscription.key)
        else:
            await asyncio.sleep(duration)
            _print_status(tracker, subscription.key)
    finally:
        await tracker.aclose()
    return 0


async def _advance(tracker: OrderTracker, order_id: str, status: str) -> int:
    try:
        order = await tracker.advance(order_id, status)
    except OrderTrackingError as exc:
        print(f"ERR [{exc.kind}]: {exc.cause}", file=sys.stderr)
        return 1
    finally:
        await tracker.aclose()
    print(f"Order {order.order_number} status updated to {order.status}")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order-tracking",
        description="Poll an order authority and surface live order status",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to tracker JSON config. Defaults to ORDER_TRACKING_* variables.",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Order authority base URL (overrides config).",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("ORDER_TRACKING_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Operator console: poll all orders.")
    watch.add_argument("--duration", type=float, default=None, help="Stop after N seconds.")

    track = sub.add_parser("track", help="Customer tracker: poll one order.")
    track.add_argument("order_id", nargs="?", default=None, help="Defaults to the last tracked order.")
    track.add_argument("--duration", type=float, default=None, help="Stop after N seconds.")

    advance = sub.add_parser("advance", help="Request a status transition.")
    advance.add_argument("order_id")
    advance.add_argument("status", choices=sorted(ORDER_STATES))

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = _load_config(args)
    except (FileNotFoundError, ValidationError) as exc:
        print(f"ERR: invalid configuration: {exc}", file=sys.stderr)
        return 2

    order_id: str | None = None
    if args.command == "track":
        order_id = LastViewedOrderStore(cfg.state_path).resolve(args.order_id)
        if order_id is None:
            print("ERR: no order id given and none tracked before", file=sys.stderr)
            return 2

    tracker = OrderTracker(
        cfg,
        sinks=[CallbackSink(_print_notification)],
    )

    if args.command == "advance":
        return asyncio.run(_advance(tracker, args.order_id, args.status))

    return asyncio.run(_watch(tracker, order_id, args.duration))


if __name__ == "__main__":
    raise SystemExit(main())
