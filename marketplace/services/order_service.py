# marketplace/services/order_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.order import Order, OrderItem
from marketplace.models.user import User
from marketplace.repositories.order_repo import OrderRepository
from marketplace.schemas.order import (
    OrderItemRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
    ShippingAddressUpdate,
    StatusHistoryEntry,
    TrackingUpdate,
)

logger = logging.getLogger(__name__)

# Allowed lifecycle moves; statuses missing on the left are terminal.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "created": {"paid", "cancelled", "failed"},
    "paid": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered", "returned"},
    "delivered": {"returned"},
    "cancelled": set(),
    "failed": set(),
    "returned": set(),
}

ADDRESS_LOCKED_STATUSES = {"shipped", "delivered", "returned"}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


class OrderService:
    """
    Business logic for orders after checkout.

    Responsibilities:
      - Visibility: buyer, seller or admin of an order
      - Seller-driven status lifecycle with an append-only history
      - Tracking info (seller) and shipping address (buyer)
    """

    def __init__(self, order_repo: OrderRepository):
        self.order_repo = order_repo

    # -------- Internal helpers --------

    def _get_order(self, session: Session, order_id: uuid.UUID) -> Order:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    @staticmethod
    def _ensure_visible(order: Order, user: User) -> None:
        if user.role == "admin":
            return
        if user.id not in (order.buyer_id, order.seller_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to view this order",
            )

    @staticmethod
    def _ensure_seller(order: Order, user: User) -> None:
        if order.seller_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the seller of this order can update it",
            )

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        return OrderWithItemsRead(
            id=order.id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            subtotal_amount=order.subtotal_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            status=order.status,
            shipping_address=order.shipping_address,
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[OrderItemRead.model_validate(it, from_attributes=True) for it in items],
            status_history=[StatusHistoryEntry(**h) for h in order.status_history],
        )

    # -------- Reads --------

    def list_mine(
        self,
        session: Session,
        user_id: uuid.UUID,
        role: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        return self.order_repo.list_for_user(session, user_id, role, skip, limit)

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        status_filter: str | None = None,
    ) -> list[Order]:
        return self.order_repo.list_all(session, skip, limit, status_filter)

    def get_order(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        order = self._get_order(session, order_id)
        self._ensure_visible(order, user)
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def get_history(
        self,
        session: Session,
        user: User,
        order_id: uuid.UUID,
    ) -> list[StatusHistoryEntry]:
        order = self._get_order(session, order_id)
        self._ensure_visible(order, user)
        return [StatusHistoryEntry(**h) for h in order.status_history]

    # -------- Seller operations --------

    def update_status(
        self,
        session: Session,
        seller: User,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderWithItemsRead:
        """
        Move an order to a new status.

        - 403 unless the caller is the order's seller
        - 400 for a move the transition table does not allow
        - every accepted move is appended to status_history
        """
        order = self._get_order(session, order_id)
        self._ensure_seller(order, seller)

        current = order.status
        new = payload.status

        if not can_transition(current, new):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current} -> {new}",
            )

        now = datetime.now(timezone.utc)
        order.status = new
        order.status_history = [
            *order.status_history,
            {"status": new, "timestamp": now.isoformat(), "note": payload.note or ""},
        ]
        order.updated_at = now
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        logger.info(f"Order {order.id} moved {current} -> {new} by seller {seller.id}")

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def update_tracking(
        self,
        session: Session,
        seller: User,
        order_id: uuid.UUID,
        payload: TrackingUpdate,
    ) -> OrderWithItemsRead:
        order = self._get_order(session, order_id)
        self._ensure_seller(order, seller)

        order.tracking_number = payload.tracking_number
        if payload.estimated_delivery is not None:
            order.estimated_delivery = payload.estimated_delivery
        order.updated_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    # -------- Buyer operations --------

    def update_shipping_address(
        self,
        session: Session,
        buyer: User,
        order_id: uuid.UUID,
        payload: ShippingAddressUpdate,
    ) -> OrderWithItemsRead:
        """
        Change where the order goes; not allowed once it has left the seller.
        """
        order = self._get_order(session, order_id)
        if order.buyer_id != buyer.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the buyer of this order can change its address",
            )

        if order.status in ADDRESS_LOCKED_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change shipping address of a {order.status} order",
            )

        address = dict(order.shipping_address or {})
        address.update(payload.model_dump(exclude_none=True))
        order.shipping_address = address
        order.updated_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)
