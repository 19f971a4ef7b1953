# marketplace/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    A user's shopping cart.

    Only one cart per user is ever `active`; the totals are derived from the
    items and recomputed after every mutation, they are not authoritative.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    # active | converted | abandoned
    status: str = Field(default="active", index=True)

    total_items: int = Field(default=0, ge=0)
    total_price: float = Field(default=0, ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CartItem(SQLModel, table=True):
    """
    One line of a cart. A cart holds at most one line per
    (product, variant_key); adding the same option again bumps quantity.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "variant_key", name="uq_cart_product_variant"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    # Denormalized from Product.seller_id
    seller_id: uuid.UUID = Field(foreign_key="users.id")

    quantity: int = Field(gt=0)

    price_snapshot: float = Field(
        ge=0,
        description="Unit price when the line was added",
    )

    selected_variants: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    variant_key: str = Field(default="", index=True)
    variant_sku: str = Field(default="")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
