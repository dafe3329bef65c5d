"""Core order data models.

This module defines the canonical Pydantic models for orders as returned by
the order authority. Field names are snake_case in Python; the camelCase wire
names used by the authority are accepted as aliases and emitted when dumping
``by_alias=True``. The shape mirrors ``core/schemas/order.schema.json``.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from order_tracking.core.domain.order_state_machine import OrderStatus

# ---------------------------------------------------------------------------
# Nested models
# ---------------------------------------------------------------------------


class OrderItem(BaseModel):
    name: str = Field(..., min_length=1)
    unit_price: float = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("unitPrice", "price", "unit_price"),
        serialization_alias="unitPrice",
    )
    quantity: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Customer(BaseModel):
    """Customer details captured when the order was placed. Never updated."""

    name: str = Field(..., min_length=1)
    phone: str | None = None
    email: str | None = None
    address: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------


class Order(BaseModel):
    """
    One food order as last reported by the authority.

    Notes:
    - id and order_number are server-assigned and immutable.
    - total_amount is taken as given; the client never recomputes it for
      trust decisions.
    - updated_at advances on every accepted status transition and is the
      recency key for last-write-wins reconciliation.
    """

    id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="id",
    )
    order_number: str = Field(..., min_length=1, alias="orderNumber")
    status: OrderStatus
    items: tuple[OrderItem, ...] = Field(default_factory=tuple)
    total_amount: float = Field(..., ge=0, alias="totalAmount")
    customer: Customer
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    estimated_delivery: datetime | None = Field(default=None, alias="estimatedDelivery")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _default_updated_at(cls, data: Any) -> Any:
        """Fall back to the creation time when the authority omits updatedAt."""
        if not isinstance(data, dict):
            return data
        if data.get("updatedAt") is None and data.get("updated_at") is None:
            created = data.get("createdAt", data.get("created_at"))
            if created is not None:
                data = dict(data)
                data["updatedAt"] = created
        return data

    @field_validator("created_at", "updated_at", "estimated_delivery")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        """Timestamps without an offset are taken as UTC; all are stored in UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_timestamps(self) -> Order:
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


Snapshot = tuple[Order, ...]
