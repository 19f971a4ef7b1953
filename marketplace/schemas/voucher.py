# marketplace/schemas/voucher.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from marketplace.schemas.common import Pagination

VoucherType = Literal["percentage", "fixed"]
VoucherRequestStatus = Literal["pending", "approved", "rejected", "cancelled"]


class VoucherTerms(SQLModel):
    """
    Discount terms shared by a seller's request and the resulting voucher.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1, max_length=50)
    type: VoucherType
    value: float
    min_order_value: float = Field(default=0, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int = Field(default=1, ge=1)
    start_date: datetime | None = None
    end_date: datetime

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v

    @model_validator(mode="after")
    def check_value(self):
        if self.value <= 0:
            raise ValueError("value must be greater than 0")
        if self.type == "percentage" and self.value > 100:
            raise ValueError("percentage voucher cannot exceed 100")
        return self


class VoucherRequestCreate(VoucherTerms):
    pass


class VoucherRequestRead(SQLModel):
    id: uuid.UUID
    seller_id: uuid.UUID
    code: str
    type: VoucherType
    value: float
    min_order_value: float
    max_discount_amount: float | None
    usage_limit: int | None
    per_user_limit: int
    start_date: datetime
    end_date: datetime
    status: VoucherRequestStatus
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    admin_notes: str
    rejection_reason: str
    voucher_id: uuid.UUID | None
    created_at: datetime


class VoucherRead(SQLModel):
    id: uuid.UUID
    seller_id: uuid.UUID
    code: str
    type: VoucherType
    value: float
    min_order_value: float
    max_discount_amount: float | None
    usage_limit: int | None
    used_count: int
    per_user_limit: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_from_request: uuid.UUID | None
    created_at: datetime


class VoucherRequestPage(SQLModel):
    data: list[VoucherRequestRead]
    pagination: Pagination


class VoucherRequestApprove(SQLModel):
    model_config = ConfigDict(extra="forbid")

    admin_notes: str = ""


class VoucherRequestReject(SQLModel):
    model_config = ConfigDict(extra="forbid")

    rejection_reason: str
    admin_notes: str = ""

    @field_validator("rejection_reason")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("rejection_reason is required")
        return v


class VoucherApproval(SQLModel):
    request: VoucherRequestRead
    voucher: VoucherRead


class VoucherStatusUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool


class VoucherValidateRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1)
    total_amount: float = Field(gt=0)
    seller_id: uuid.UUID | None = None


class VoucherValidation(SQLModel):
    voucher_id: uuid.UUID
    seller_id: uuid.UUID
    voucher_code: str
    discount_amount: float
    final_amount: float
