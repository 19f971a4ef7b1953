# marketplace/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from marketplace.core.auth import require_customer
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.cart import CartRead, CartItemCreate, CartItemUpdate
from marketplace.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=CartRead)
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Get (or lazily create) the current user's active cart.

    Auth:
      - buyers and sellers; admins are forbidden.
    """
    return service.get_my_cart(session, current_user.id)


@router.post("/items", response_model=CartRead, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Add a product (optionally with a variant selection) to the cart.
    """
    return service.add_to_cart(session, current_user.id, payload)


@router.patch("/items/{item_id}", response_model=CartRead)
def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Set or step the quantity of a cart line. Reaching 0 removes it.
    """
    return service.update_item(session, current_user.id, item_id, payload)


@router.delete("/items/{item_id}", response_model=CartRead)
def remove_cart_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    return service.remove_item(session, current_user.id, item_id)


@router.delete("", response_model=CartRead)
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Remove every line from the cart.
    """
    return service.clear_cart(session, current_user.id)
