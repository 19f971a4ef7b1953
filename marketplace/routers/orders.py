# marketplace/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin, require_auth, require_customer, require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.address_repo import AddressRepository
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.order_repo import OrderRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.checkout import (
    CheckoutConfirmRequest,
    CheckoutConfirmResponse,
    CheckoutPreviewResponse,
    CheckoutRequest,
    LegacyOrderCreate,
)
from marketplace.schemas.order import (
    OrderRead,
    OrderRole,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
    ShippingAddressUpdate,
    StatusHistoryEntry,
    TrackingUpdate,
)
from marketplace.services.address_service import AddressService
from marketplace.services.checkout_service import CheckoutService
from marketplace.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
checkout_service = CheckoutService(
    cart_repo, product_repo, order_repo, AddressService(AddressRepository())
)
service = OrderService(order_repo)


# -------- Checkout --------


@router.post(
    "/checkout/preview",
    response_model=CheckoutPreviewResponse,
    response_model_by_alias=True,
)
def preview_checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Price the selected items per seller without writing anything.
    Unavailable items are listed in `outOfStockItems`.
    """
    return checkout_service.preview(session, current_user.id, payload)


@router.post(
    "/checkout/confirm",
    response_model=CheckoutConfirmResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
def confirm_checkout(
    payload: CheckoutConfirmRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Place one order per seller.

    Errors:
      - 400 when nothing in the selection can be bought
      - 409 when stock changed before it could be deducted
    """
    return checkout_service.confirm(session, current_user.id, payload)


@router.post(
    "",
    response_model=CheckoutConfirmResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: LegacyOrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Older clients: buy the given items directly, payment always succeeds.
    """
    return checkout_service.create_legacy_order(session, current_user.id, payload)


# -------- Buyer / seller endpoints --------


@router.get(
    "/me",
    response_model=list[OrderRead],
)
def list_my_orders(
    role: OrderRole | None = None,
    skip: int = 0,
    limit: int = 50,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Orders the user bought (`role=buyer`), sold (`role=seller`) or both.
    """
    return service.list_mine(session, current_user.id, role, skip, limit)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_order(session, current_user, order_id)


@router.get(
    "/{order_id}/history",
    response_model=list[StatusHistoryEntry],
)
def get_order_history(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_history(session, current_user, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderWithItemsRead,
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    """
    Seller moves the order along its lifecycle:

      created    -> paid, cancelled, failed

      paid       -> processing, cancelled

      processing -> shipped, cancelled

      shipped    -> delivered, returned

      delivered  -> returned

    """
    return service.update_status(session, current_user, order_id, payload)


@router.patch(
    "/{order_id}/tracking",
    response_model=OrderWithItemsRead,
)
def update_order_tracking(
    order_id: uuid.UUID,
    payload: TrackingUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.update_tracking(session, current_user, order_id, payload)


@router.patch(
    "/{order_id}/shipping-address",
    response_model=OrderWithItemsRead,
)
def update_shipping_address(
    order_id: uuid.UUID,
    payload: ShippingAddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.update_shipping_address(session, current_user, order_id, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    skip: int = 0,
    limit: int = 50,
    session: Session = Depends(get_session),
):
    """
    List all orders (admin only).
    """
    return service.list_all(session, skip, limit, status_filter)
