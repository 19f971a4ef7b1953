# marketplace/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class VariantSelection(SQLModel):
    """A single chosen option, e.g. name="Size", value="M"."""

    name: str
    value: str


class VariantOptionIn(SQLModel):
    value: str
    sku: str = ""


class VariantGroup(SQLModel):
    """
    A variant dimension offered by a product (e.g. Size with S/M/L).
    """

    name: str
    options: list[VariantOptionIn] = []

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("variant name cannot be empty")
        return v


class VariantCombinationIn(SQLModel):
    """
    Stock (and optionally price) for one full combination of options.
    The key is derived server-side from `selections`.
    """

    selections: list[VariantSelection]
    quantity: int = Field(default=0, ge=0)
    price: float | None = Field(default=None, ge=0)
    sku: str = ""


class ProductCreate(SQLModel):
    """
    Payload for creating a listing. `quantity` is ignored when
    `variant_combinations` are supplied (stock is summed from them).
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=200)
    description: str = ""
    image_url: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    variants: list[VariantGroup] = []
    variant_combinations: list[VariantCombinationIn] = []
    category_id: uuid.UUID | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    image_url: str | None = None
    price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    variants: list[VariantGroup] | None = None
    variant_combinations: list[VariantCombinationIn] | None = None
    category_id: uuid.UUID | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    seller_id: uuid.UUID
    title: str
    description: str
    image_url: str
    price: float
    quantity: int
    stock: int
    variants: list[dict]
    variant_combinations: list[dict]
    category_id: uuid.UUID | None
    is_active: bool
    average_rating: float
    rating_count: int
    promotion_type: str
    original_price: float | None
    discount_percent: int
    deal_start_date: datetime | None
    deal_end_date: datetime | None
    deal_quantity_limit: int | None
    created_at: datetime
    updated_at: datetime
