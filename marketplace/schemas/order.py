# marketplace/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

OrderStatus = Literal[
    "created",
    "paid",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "failed",
    "returned",
]
OrderRole = Literal["buyer", "seller"]


class StatusHistoryEntry(SQLModel):
    status: OrderStatus
    timestamp: datetime
    note: str = ""


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    buyer_id: uuid.UUID
    seller_id: uuid.UUID
    subtotal_amount: float
    discount_amount: float
    total_amount: float
    status: OrderStatus
    shipping_address: dict | None = None
    tracking_number: str = ""
    estimated_delivery: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OrderItemRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    title: str
    unit_price: float
    quantity: int
    line_total: float
    selected_variants: list[dict] = []
    variant_sku: str = ""


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items and status history.
    """

    items: list[OrderItemRead]
    status_history: list[StatusHistoryEntry]


class OrderStatusUpdate(SQLModel):
    """
    Seller payload to move an order along its lifecycle.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
    note: str | None = None


class TrackingUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    tracking_number: str
    estimated_delivery: datetime | None = None

    @field_validator("tracking_number")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("tracking_number cannot be empty")
        return v


class ShippingAddressUpdate(SQLModel):
    """
    Partial update; fields left out keep their previous value.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None

    @field_validator("full_name", "phone", "street", "city", "state", "zip_code", "country")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None
