# marketplace/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile for the marketplace.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "buyer" | "seller" | "admin"
      - "guest" is represented by the absence of a row / missing token.

    This table is *not* responsible for password hashes. Supabase Auth
    stores the password in its own schema.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    name: str = Field(
        max_length=50,
        description="Display name; first part of email by default",
    )

    role: str = Field(
        default="buyer",
        index=True,
        description="Application role: buyer | seller | admin",
    )

    reputation_score: float = Field(
        default=0,
        description="Average overall rating across reviews received as a seller",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
