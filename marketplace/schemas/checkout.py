# marketplace/schemas/checkout.py
"""
Checkout wire models.

The storefront speaks camelCase for checkout (`cartItemIds`,
`paymentSimulation`, `outOfStockItems`, ...), so these models use a camelCase
alias generator; snake_case names are accepted on input as well.
"""

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CheckoutSource = Literal["cart", "buy_now"]
PaymentSimulation = Literal["success", "failed"]


class CheckoutModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VariantChoice(CheckoutModel):
    name: str
    value: str


class CheckoutRequestItem(CheckoutModel):
    # Kept as str so malformed ids surface as 400 instead of 422
    product_id: str
    quantity: int = Field(default=1, gt=0)
    selected_variants: list[VariantChoice] = []


class CheckoutRequest(CheckoutModel):
    """
    Body of preview / confirm.

    - source="cart": `cart_item_ids` selects lines of the active cart
      (all lines when omitted)
    - source="buy_now": `items` lists what to buy directly
    """

    source: CheckoutSource = "cart"
    cart_item_ids: list[str] | None = None
    items: list[CheckoutRequestItem] | None = None


class CheckoutConfirmRequest(CheckoutRequest):
    payment_simulation: PaymentSimulation = "success"
    # saved address to ship to; the buyer's default when omitted
    address_id: str | None = None


class LegacyOrderCreate(CheckoutModel):
    """Body of the old `POST /orders` endpoint."""

    items: list[CheckoutRequestItem]
    address_id: str | None = None


class CheckoutLine(CheckoutModel):
    """A payable item: validated, priced and within stock."""

    cart_item_id: uuid.UUID | None = None
    product_id: uuid.UUID
    seller_id: uuid.UUID
    title: str
    unit_price: float
    quantity: int
    selected_variants: list[dict] = []
    variant_key: str = ""
    variant_sku: str = ""
    available_stock: int
    line_total: float


class UnavailableItem(CheckoutModel):
    """An item that cannot be bought right now, and why."""

    title: str
    message: str
    available_stock: int = 0
    product_id: uuid.UUID | None = None
    cart_item_id: uuid.UUID | None = None
    selected_variants: list[dict] = []


class CheckoutCollection(CheckoutModel):
    """
    Explicit partial-success result of item collection: what can be paid
    for and what cannot.
    """

    payable_items: list[CheckoutLine] = []
    unavailable_items: list[UnavailableItem] = []


class CheckoutGroup(CheckoutModel):
    seller_id: uuid.UUID
    items: list[CheckoutLine]
    subtotal_amount: float


class CheckoutTotals(CheckoutModel):
    item_count: int
    subtotal_amount: float
    total_amount: float


class CheckoutPreviewResponse(CheckoutModel):
    success: bool = True
    source: CheckoutSource
    groups: list[CheckoutGroup]
    totals: CheckoutTotals
    payable_item_count: int
    out_of_stock_items: list[UnavailableItem]
    can_proceed: bool


class CheckoutOrderSummary(CheckoutModel):
    """Serialized as `{_id, status, totalAmount, seller}` for the storefront."""

    id: uuid.UUID = Field(alias="_id")
    status: str
    total_amount: float
    seller_id: uuid.UUID = Field(alias="seller")


class CheckoutConfirmResponse(CheckoutModel):
    success: bool
    payment_status: Literal["paid", "failed"]
    orders: list[CheckoutOrderSummary]
    out_of_stock_items: list[UnavailableItem]
    redirect_to: str
