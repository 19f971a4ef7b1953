# marketplace/schemas/cart.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, model_validator
from sqlmodel import SQLModel, Field

from marketplace.schemas.product import VariantSelection


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)
    selected_variants: list[VariantSelection] = []


class CartItemUpdate(SQLModel):
    """
    Payload for changing a line: either an absolute `quantity`, a +1/-1
    `action`, or both (absolute first, then the step). A result <= 0
    removes the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int | None = Field(default=None, ge=0)
    action: Literal["increase", "decrease"] | None = None

    @model_validator(mode="after")
    def require_change(self):
        if self.quantity is None and self.action is None:
            raise ValueError("quantity or action is required")
        return self


class CartItemRead(SQLModel):
    """
    Read model for a single cart line, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    seller_id: uuid.UUID
    title: str | None = None
    image_url: str | None = None
    quantity: int
    price_snapshot: float
    selected_variants: list[dict]
    variant_key: str
    variant_sku: str
    line_total: float
    created_at: datetime


class CartRead(SQLModel):
    """
    Full cart response model with totals.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    status: str
    items: list[CartItemRead]
    total_items: int
    total_price: float
