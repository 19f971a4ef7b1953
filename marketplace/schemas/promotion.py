# marketplace/schemas/promotion.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

from marketplace.schemas.common import Pagination
from marketplace.schemas.product import ProductRead

PromotionType = Literal["outlet", "daily_deal"]
PromotionStatus = Literal["pending", "approved", "rejected", "cancelled"]


class OutletRequestCreate(SQLModel):
    """
    Brand Outlet request. The original price is the product's current price.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    discounted_price: float


class DailyDealRequestCreate(SQLModel):
    """
    Daily Deal request. Date, quantity and discount rules are checked
    together so every problem is reported at once.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    discounted_price: float
    start_date: datetime
    end_date: datetime
    quantity_limit: int


class PromotionRequestRead(SQLModel):
    id: uuid.UUID
    request_type: PromotionType
    product_id: uuid.UUID
    seller_id: uuid.UUID
    status: PromotionStatus
    original_price: float
    discounted_price: float
    discount_percent: int
    start_date: datetime | None
    end_date: datetime | None
    quantity_limit: int | None
    eligibility_checks: dict
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    admin_notes: str
    rejection_reason: str
    created_at: datetime


class PromotionRequestPage(SQLModel):
    data: list[PromotionRequestRead]
    pagination: Pagination


class PromotionApprove(SQLModel):
    model_config = ConfigDict(extra="forbid")

    admin_notes: str = ""


class PromotionReject(SQLModel):
    model_config = ConfigDict(extra="forbid")

    rejection_reason: str
    admin_notes: str = ""

    @field_validator("rejection_reason")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Rejection reason is required")
        return v


class PromotionApproval(SQLModel):
    request: PromotionRequestRead
    product: ProductRead
