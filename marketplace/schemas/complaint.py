# marketplace/schemas/complaint.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

ComplaintReason = Literal["question", "late", "return", "fraud", "cancel"]
ComplaintStatus = Literal["open", "in_review", "agreed", "rejected", "sent_to_admin"]


class ComplaintCreate(SQLModel):
    """
    Buyer payload. The seller is taken from the order.
    """

    model_config = ConfigDict(extra="forbid")

    order_id: uuid.UUID
    reason: ComplaintReason
    content: str = Field(max_length=2000)

    @field_validator("content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty")
        return v


class ComplaintHistoryEntry(SQLModel):
    action_by: uuid.UUID
    action: str
    note: str = ""
    at: datetime


class ComplaintRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    buyer_id: uuid.UUID
    seller_id: uuid.UUID
    reason: ComplaintReason
    content: str
    status: ComplaintStatus
    history: list[ComplaintHistoryEntry]
    resolution: str | None
    resolution_note: str
    resolved_by: uuid.UUID | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ComplaintRespond(SQLModel):
    model_config = ConfigDict(extra="forbid")

    action: Literal["in_review", "agreed", "rejected"]
    note: str = ""


class ComplaintEscalate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    note: str = ""


class ComplaintResolve(SQLModel):
    model_config = ConfigDict(extra="forbid")

    resolution: Literal["approved", "rejected"]
    note: str = ""
