# marketplace/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Listing owned by a seller.

    Stock lives either in the flat `quantity` / `stock` pair or, when the
    product has variants, in `variant_combinations`; in that case the flat
    pair is the sum over combinations (see core.inventory.sync_product_stock).

    JSON shapes:
      variants:             [{"name": "Size", "options": [{"value": "M", "sku": ""}]}]
      variant_combinations: [{"key": "Size:M", "selections": [...],
                              "quantity": 3, "price": 12.5 | null, "sku": ""}]
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    seller_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    title: str = Field(
        max_length=200,
        index=True,
    )

    description: str = Field(default="")

    image_url: str = Field(
        default="",
        description="Public URL of the main image (uploaded elsewhere)",
    )

    price: float = Field(
        ge=0,
        description="Base unit price",
    )

    quantity: int = Field(
        default=0,
        ge=0,
        description="Sellable units (sum of combinations when variants exist)",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="Mirror of quantity kept for listing queries",
    )

    variants: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    variant_combinations: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Soft-delete / visibility flag",
    )

    average_rating: float = Field(default=0)
    rating_count: int = Field(default=0)

    # normal | outlet | daily_deal; set when an admin approves a promotion
    promotion_type: str = Field(default="normal", index=True)
    original_price: float | None = Field(
        default=None,
        description="Price before the promotion replaced `price`",
    )
    discount_percent: int = Field(default=0)
    deal_start_date: datetime | None = None
    deal_end_date: datetime | None = None
    deal_quantity_limit: int | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
