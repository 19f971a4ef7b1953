# marketplace/services/cart_service.py
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.core.inventory import find_variant_option, round2
from marketplace.models.cart import Cart, CartItem
from marketplace.models.product import Product
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartRead,
)


def recalculate_cart_totals(
    session: Session,
    cart_repo: CartRepository,
    cart: Cart,
) -> Cart:
    """
    Recompute `total_items` / `total_price` from the cart's current lines.

    Shared by every cart mutation and by checkout. Does not commit.
    """
    items = cart_repo.list_items(session, cart.id)
    cart.total_items = sum(it.quantity for it in items)
    cart.total_price = round2(sum(it.quantity * it.price_snapshot for it in items))
    cart.updated_at = datetime.now(timezone.utc)
    return cart_repo.stage_cart(session, cart)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - one active cart per user, created lazily
      - validate product, ownership and variant selection on add
      - enforce quantity <= stock of the selected variant on every change
      - snapshot the option price when a line is created
      - keep cart totals in sync after each mutation
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_or_create_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.cart_repo.get_active_cart(session, user_id)
        if cart is None:
            cart = self.cart_repo.create_cart(session, user_id)
        return cart

    def _get_valid_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is no longer available",
            )
        return product

    def _get_cart_item(self, session: Session, cart: Cart, item_id: uuid.UUID) -> CartItem:
        item = self.cart_repo.get_item(session, cart.id, item_id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Item not found in cart",
            )
        return item

    def _commit_totals(self, session: Session, cart: Cart) -> None:
        recalculate_cart_totals(session, self.cart_repo, cart)
        session.commit()

    def _build_cart_dto(self, session: Session, cart: Cart) -> CartRead:
        items = self.cart_repo.list_items(session, cart.id)

        item_reads: list[CartItemRead] = []
        for it in items:
            product = self.product_repo.get_by_id(session, it.product_id)
            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    seller_id=it.seller_id,
                    title=product.title if product else None,
                    image_url=product.image_url if product else None,
                    quantity=it.quantity,
                    price_snapshot=it.price_snapshot,
                    selected_variants=it.selected_variants,
                    variant_key=it.variant_key,
                    variant_sku=it.variant_sku,
                    line_total=round2(it.quantity * it.price_snapshot),
                    created_at=it.created_at,
                )
            )

        return CartRead(
            id=cart.id,
            user_id=cart.user_id,
            status=cart.status,
            items=item_reads,
            total_items=cart.total_items,
            total_price=cart.total_price,
        )

    # ---- public operations ----

    def get_my_cart(self, session: Session, user_id: uuid.UUID) -> CartRead:
        cart = self._get_or_create_cart(session, user_id)
        return self._build_cart_dto(session, cart)

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartRead:
        """
        Add a product (and variant selection) to the user's cart.

        Rules:
          - product must exist and be active
          - sellers cannot put their own products in the cart
          - the variant selection must resolve to a configured option
          - existing + requested quantity <= stock of that option
        """
        product = self._get_valid_product(session, payload.product_id)

        if product.seller_id == user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot purchase your own products",
            )

        option = find_variant_option(product, payload.selected_variants)
        if not option.ok:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=option.message,
            )

        cart = self._get_or_create_cart(session, user_id)
        existing = self.cart_repo.find_line(session, cart.id, product.id, option.key)
        wanted = payload.quantity + (existing.quantity if existing else 0)

        if wanted > option.quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product stock is not enough to add",
            )

        if existing:
            existing.quantity = wanted
            self.cart_repo.save_item(session, existing)
        else:
            self.cart_repo.save_item(
                session,
                CartItem(
                    cart_id=cart.id,
                    product_id=product.id,
                    seller_id=product.seller_id,
                    quantity=payload.quantity,
                    price_snapshot=option.price,
                    selected_variants=option.selections,
                    variant_key=option.key,
                    variant_sku=option.sku,
                ),
            )

        self._commit_totals(session, cart)
        return self._build_cart_dto(session, cart)

    def update_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartRead:
        """
        Change the quantity of a line.

        The variant stock is re-validated against the product's current
        configuration; a resulting quantity <= 0 removes the line.
        """
        cart = self._get_or_create_cart(session, user_id)
        item = self._get_cart_item(session, cart, item_id)

        new_quantity = item.quantity
        if payload.quantity is not None:
            new_quantity = payload.quantity
        if payload.action == "increase":
            new_quantity += 1
        elif payload.action == "decrease":
            new_quantity -= 1

        if new_quantity <= 0:
            self.cart_repo.delete_item(session, item)
            self._commit_totals(session, cart)
            return self._build_cart_dto(session, cart)

        product = self._get_valid_product(session, item.product_id)
        option = find_variant_option(product, item.selected_variants)
        if not option.ok:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=option.message,
            )
        if new_quantity > option.quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock",
            )

        item.quantity = new_quantity
        self.cart_repo.save_item(session, item)
        self._commit_totals(session, cart)
        return self._build_cart_dto(session, cart)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartRead:
        cart = self._get_or_create_cart(session, user_id)
        item = self._get_cart_item(session, cart, item_id)
        self.cart_repo.delete_item(session, item)
        self._commit_totals(session, cart)
        return self._build_cart_dto(session, cart)

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> CartRead:
        cart = self._get_or_create_cart(session, user_id)
        self.cart_repo.delete_items(session, self.cart_repo.list_items(session, cart.id))
        self._commit_totals(session, cart)
        return self._build_cart_dto(session, cart)
