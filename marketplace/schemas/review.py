# marketplace/schemas/review.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from marketplace.schemas.common import Pagination

ReviewType = Literal["positive", "neutral", "negative"]
AdminReviewFilter = Literal["all", "flagged", "deleted", "active"]


class ReviewCreate(SQLModel):
    """
    Buyer feedback on a product they received in an order.
    `type` defaults from the overall rating when left out.
    """

    model_config = ConfigDict(extra="forbid")

    order_id: uuid.UUID
    product_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    rating1: int = Field(ge=1, le=5)
    rating2: int = Field(ge=1, le=5)
    rating3: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=2000)
    type: ReviewType | None = None

    @field_validator("comment")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()


class ReviewFlag(SQLModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(max_length=500)

    @field_validator("reason")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Flag reason is required")
        return v


class SellerResponseCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    response: str = Field(max_length=500)

    @field_validator("response")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("response cannot be empty")
        return v


class ReviewRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    reviewer_id: uuid.UUID
    seller_id: uuid.UUID
    rating: int
    rating1: int
    rating2: int
    rating3: int
    comment: str
    type: ReviewType
    flagged: bool
    seller_response: str
    seller_response_at: datetime | None
    seller_response_edited: bool
    created_at: datetime


class AdminReviewRead(ReviewRead):
    flag_reason: str
    flag_count: int
    deleted_at: datetime | None
    deleted_by: uuid.UUID | None


class RatingSummary(SQLModel):
    """
    Averages over the non-deleted reviews, rounded to 2 decimals;
    None when there are no reviews. `positive_*` is filled for sellers only.
    """

    average_rating: float | None = None
    average_rating1: float | None = None
    average_rating2: float | None = None
    average_rating3: float | None = None
    rating_count: int = 0
    positive_count: int | None = None
    positive_rate: float | None = None


class ReviewPage(SQLModel):
    data: list[ReviewRead]
    pagination: Pagination
    summary: RatingSummary


class AdminReviewPage(SQLModel):
    data: list[AdminReviewRead]
    pagination: Pagination


class ReviewFlagResult(SQLModel):
    id: uuid.UUID
    flagged: bool
    flag_count: int
