# marketplace/models/voucher.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Voucher(SQLModel, table=True):
    """
    Seller discount code, created by an admin when approving a
    VoucherRequest. Codes are stored upper-cased.
    """

    __tablename__ = "vouchers"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    code: str = Field(unique=True, index=True, max_length=50)

    seller_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # percentage | fixed
    type: str
    value: float = Field(gt=0)

    min_order_value: float = Field(default=0, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)
    used_count: int = Field(default=0, ge=0)
    per_user_limit: int = Field(default=1, ge=1)

    start_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    end_date: datetime

    is_active: bool = Field(default=True, index=True)

    created_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    created_from_request: uuid.UUID | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class VoucherUsage(SQLModel, table=True):
    """One redemption of a voucher by a user."""

    __tablename__ = "voucher_usages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    voucher_id: uuid.UUID = Field(foreign_key="vouchers.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    order_id: uuid.UUID | None = Field(default=None, foreign_key="orders.id")
    used_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class VoucherRequest(SQLModel, table=True):
    """
    Seller proposal for a voucher, reviewed by an admin.

    status: pending | approved | rejected | cancelled
    """

    __tablename__ = "voucher_requests"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    seller_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    code: str = Field(index=True, max_length=50)
    type: str
    value: float = Field(gt=0)
    min_order_value: float = Field(default=0, ge=0)
    max_discount_amount: float | None = None
    usage_limit: int | None = None
    per_user_limit: int = Field(default=1, ge=1)
    start_date: datetime
    end_date: datetime

    status: str = Field(default="pending", index=True)

    reviewed_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    reviewed_at: datetime | None = None
    admin_notes: str = Field(default="")
    rejection_reason: str = Field(default="")
    voucher_id: uuid.UUID | None = Field(default=None, foreign_key="vouchers.id")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
