# marketplace/repositories/cart_repo.py
import uuid
from sqlmodel import Session, select
from marketplace.models.cart import Cart, CartItem


class CartRepository:

    # ---- Carts ----

    def get_active_cart(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id, Cart.status == "active")
        return session.exec(stmt).first()

    def create_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = Cart(user_id=user_id)
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def stage_cart(self, session: Session, cart: Cart) -> Cart:
        """Add cart changes to the transaction without committing."""
        session.add(cart)
        session.flush()
        return cart

    # ---- Items ----

    def list_items(self, session: Session, cart_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at)
        )
        return session.exec(stmt).all()

    def get_item(
        self, session: Session, cart_id: uuid.UUID, item_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart_id)
        return session.exec(stmt).first()

    def find_line(
        self,
        session: Session,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        variant_key: str,
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id,
            CartItem.variant_key == variant_key,
        )
        return session.exec(stmt).first()

    def save_item(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete_item(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def delete_items(self, session: Session, items: list[CartItem]) -> None:
        """Remove several lines inside the caller's transaction (no commit)."""
        for item in items:
            session.delete(item)
        session.flush()
