"""
Semantic test: tracker configuration.

Invariant:
Poll cadences and the request timeout are positive and independent, and
unknown keys are rejected.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from order_tracking.config.tracker_config import TrackerConfig


def test_defaults() -> None:
    cfg = TrackerConfig.from_json_obj({"base_url": "http://orders.test"})

    assert cfg.list_poll_interval_s == 30.0
    assert cfg.order_poll_interval_s == 10.0
    assert cfg.request_timeout_s == 10.0
    assert cfg.event_log_path is None


def test_from_json_file(tmp_path: Path) -> None:
    path = tmp_path / "tracker.json"
    path.write_text(
        json.dumps({"base_url": "http://orders.test", "list_poll_interval_s": 5, "order_poll_interval_s": 60}),
        encoding="utf-8",
    )

    cfg = TrackerConfig.from_json_file(path)

    assert cfg.list_poll_interval_s == 5.0
    assert cfg.order_poll_interval_s == 60.0


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        TrackerConfig.from_json_file(tmp_path / "missing.json")


def test_from_env_with_overrides(tmp_path: Path) -> None:
    environ = {
        "ORDER_TRACKING_BASE_URL": "http://env.test",
        "ORDER_TRACKING_ORDER_POLL_INTERVAL_S": "2.5",
        "ORDER_TRACKING_STATE_PATH": str(tmp_path / "state.json"),
        "UNRELATED": "x",
    }

    cfg = TrackerConfig.from_env(environ, base_url="http://cli.test", request_timeout_s=None)

    assert cfg.base_url == "http://cli.test"
    assert cfg.order_poll_interval_s == 2.5
    assert cfg.state_path == tmp_path / "state.json"
    assert cfg.request_timeout_s == 10.0


def test_base_url_required() -> None:
    with pytest.raises(ValidationError):
        TrackerConfig.from_env({})


@pytest.mark.parametrize("field", ["list_poll_interval_s", "order_poll_interval_s", "request_timeout_s"])
def test_intervals_must_be_positive(field: str) -> None:
    with pytest.raises(ValidationError):
        TrackerConfig.from_json_obj({"base_url": "http://orders.test", field: 0})


def test_unknown_keys_rejected() -> None:
    with pytest.raises(ValidationError):
        TrackerConfig.from_json_obj({"base_url": "http://orders.test", "poll_interval": 5})
