# marketplace/models/order.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Order between one buyer and one seller.

    A checkout spanning several sellers produces one Order per seller.
    `status_history` is append-only: [{"status", "timestamp", "note"}].
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    buyer_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    seller_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    subtotal_amount: float = Field(default=0)
    discount_amount: float = Field(default=0)
    total_amount: float = Field(description="Amount charged for this order")

    # created | paid | processing | shipped | delivered | cancelled | failed | returned
    status: str = Field(
        default="created",
        index=True,
    )

    status_history: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # {"street", "city", "state", "zip_code", "country"}
    shipping_address: dict | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    tracking_number: str = Field(default="")
    estimated_delivery: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Snapshot of a purchased line; later product edits do not change it.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    title: str
    unit_price: float
    quantity: int = Field(gt=0)
    line_total: float

    selected_variants: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    variant_sku: str = Field(default="")
