# marketplace/models/complaint.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Complaint(SQLModel, table=True):
    """
    Buyer complaint about an order, handled by the seller and, when
    escalated, by an admin.

    status: open | in_review | agreed | rejected | sent_to_admin
    history: [{"action_by", "action", "note", "at"}]
    """

    __tablename__ = "complaints"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(foreign_key="orders.id", index=True)
    buyer_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    seller_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # question | late | return | fraud | cancel
    reason: str
    content: str

    status: str = Field(default="open", index=True)

    history: list[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    resolved_by: uuid.UUID | None = Field(default=None, foreign_key="users.id")
    resolved_at: datetime | None = None
    # approved | rejected
    resolution: str | None = None
    resolution_note: str = Field(default="")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
