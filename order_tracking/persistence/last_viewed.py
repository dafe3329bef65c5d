"""Durable storage of the most recently tracked order id.

This is the only state that outlives the process: a restart resumes
tracking the same order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger(__name__)

LAST_ORDER_KEY = "lastOrderId"


class LastViewedOrderStore:
    """Small JSON key/value file holding ``lastOrderId``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (ValueError, OSError):
            LOGGER.warning("Ignoring unreadable state file", extra={"path": str(self._path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def get(self) -> str | None:
        value = self._load().get(LAST_ORDER_KEY)
        return value if isinstance(value, str) and value else None

    def set(self, order_id: str) -> None:
        if not order_id:
            raise ValueError("order_id must be non-empty")
        data = self._load()
        data[LAST_ORDER_KEY] = order_id
        self._write(data)

    def clear(self) -> None:
        data = self._load()
        if data.pop(LAST_ORDER_KEY, None) is not None:
            self._write(data)

    def resolve(self, explicit: str | None = None) -> str | None:
        """Pick the order to track: an explicit id wins over the stored one.

        Whatever is chosen is persisted so that a reload resumes it.
        """
        explicit = explicit.strip() if explicit else None
        order_id = explicit or self.get()
        if order_id is not None and order_id != self.get():
            self.set(order_id)
        return order_id
