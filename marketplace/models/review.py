# marketplace/models/review.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field


class Review(SQLModel, table=True):
    """
    Buyer feedback on one product of one order.

    `rating` is the overall score; `rating1..3` are the detailed scores
    (item as described, communication, shipping). One review per
    (order, product, reviewer). Admin removal is a soft delete.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", "reviewer_id", name="uq_review_order_product_reviewer"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    reviewer_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    seller_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    rating: int = Field(ge=1, le=5)
    rating1: int = Field(ge=1, le=5)
    rating2: int = Field(ge=1, le=5)
    rating3: int = Field(ge=1, le=5)

    comment: str = Field(default="", max_length=2000)

    # positive | neutral | negative
    type: str = Field(index=True)

    flagged: bool = Field(default=False, index=True)
    # user ids (str) that flagged this review
    flagged_by: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    flag_reason: str = Field(default="")

    deleted_at: datetime | None = None
    deleted_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")

    seller_response: str = Field(default="", max_length=500)
    seller_response_at: datetime | None = None
    seller_response_edited: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
