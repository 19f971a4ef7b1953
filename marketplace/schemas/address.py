# marketplace/schemas/address.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

PHONE_PATTERN = r"^\+?\d{8,15}$"


class AddressCreate(SQLModel):
    """
    New address-book entry. The first address a user saves becomes the
    default regardless of `is_default`.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(max_length=100)
    phone: str = Field(schema_extra={"pattern": PHONE_PATTERN})
    country: str = ""
    city: str = ""
    district: str = ""
    ward: str = ""
    street: str = ""
    detail: str = Field(default="", max_length=500)
    is_default: bool = False

    @field_validator("full_name")
    @classmethod
    def full_name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("full_name is required")
        return v

    @field_validator("country", "city", "district", "ward", "street", "detail")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()


class AddressUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, schema_extra={"pattern": PHONE_PATTERN})
    country: str | None = None
    city: str | None = None
    district: str | None = None
    ward: str | None = None
    street: str | None = None
    detail: str | None = Field(default=None, max_length=500)
    is_default: bool | None = None

    @field_validator("full_name")
    @classmethod
    def full_name_not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("full_name cannot be empty")
        return v


class AddressRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    phone: str
    country: str
    city: str
    district: str
    ward: str
    street: str
    detail: str
    is_default: bool
    created_at: datetime
    updated_at: datetime
