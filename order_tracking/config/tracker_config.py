"""Tracker configuration model."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_STATE_PATH = Path.home() / ".order_tracking" / "state.json"

_ENV_PREFIX = "ORDER_TRACKING_"


class TrackerConfig(BaseModel):
    """Structured configuration for the order synchronization core.

    JSON example:
        {
          "base_url": "https://orders.example.com",
          "list_poll_interval_s": 30,
          "order_poll_interval_s": 10
        }
    """

    base_url: str = Field(..., min_length=1)

    # The two cadences are independent settings.
    list_poll_interval_s: float = Field(30.0, gt=0)
    order_poll_interval_s: float = Field(10.0, gt=0)
    request_timeout_s: float = Field(10.0, gt=0)

    state_path: Path = DEFAULT_STATE_PATH
    event_log_path: Path | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> TrackerConfig:
        """Create a TrackerConfig instance from a JSON-compatible object."""
        return cls.model_validate(obj)

    @classmethod
    def from_json_file(cls, path: str | Path) -> TrackerConfig:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(path)
        return cls.from_json_obj(json.loads(path.read_text(encoding="utf-8")))

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> TrackerConfig:
        """Build a config from ``ORDER_TRACKING_*`` variables.

        Example: ORDER_TRACKING_BASE_URL, ORDER_TRACKING_LIST_POLL_INTERVAL_S.
        Keyword overrides win over the environment; None overrides are ignored.
        """
        env = os.environ if environ is None else environ

        data: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw:
                data[name] = raw

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
