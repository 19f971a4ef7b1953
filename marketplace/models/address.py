# marketplace/models/address.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Address(SQLModel, table=True):
    """
    Saved delivery address in a user's address book.

    At most one address per user has `is_default=True`; checkout falls back
    to it when no address is chosen explicitly.
    """

    __tablename__ = "addresses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    full_name: str = Field(max_length=100)
    phone: str = Field(max_length=20)

    country: str = Field(default="")
    city: str = Field(default="")
    district: str = Field(default="")
    ward: str = Field(default="")
    street: str = Field(default="")
    detail: str = Field(default="", max_length=500)

    is_default: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
