# marketplace/models/promotion.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class PromotionRequest(SQLModel, table=True):
    """
    Seller request to feature a product as a Brand Outlet item or a
    Daily Deal, reviewed by an admin.

    type:   outlet | daily_deal
    status: pending | approved | rejected | cancelled

    Prices are captured when the request is made; approval copies them onto
    the product.
    """

    __tablename__ = "promotion_requests"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    request_type: str = Field(index=True)

    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    seller_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    status: str = Field(default="pending", index=True)

    original_price: float
    discounted_price: float
    discount_percent: int

    # daily deals only
    start_date: datetime | None = None
    end_date: datetime | None = None
    quantity_limit: int | None = None

    # {"listing_age_days", "listing_age_met", "discount_met", "all_passed"}
    eligibility_checks: dict = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    reviewed_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    reviewed_at: datetime | None = None
    admin_notes: str = Field(default="")
    rejection_reason: str = Field(default="")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
