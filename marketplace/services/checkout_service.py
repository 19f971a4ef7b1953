# marketplace/services/checkout_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.core.config import get_settings
from marketplace.core.inventory import (
    find_variant_option,
    normalize_selected_variants,
    normalize_variant_combinations,
    round2,
    sync_product_stock,
)
from marketplace.models.order import Order, OrderItem
from marketplace.models.product import Product
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.order_repo import OrderRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.checkout import (
    CheckoutCollection,
    CheckoutConfirmRequest,
    CheckoutConfirmResponse,
    CheckoutGroup,
    CheckoutLine,
    CheckoutOrderSummary,
    CheckoutPreviewResponse,
    CheckoutRequest,
    CheckoutTotals,
    LegacyOrderCreate,
    UnavailableItem,
)
from marketplace.services.address_service import AddressService
from marketplace.services.cart_service import recalculate_cart_totals

logger = logging.getLogger(__name__)
settings = get_settings()


def _dump_items(items: list[UnavailableItem]) -> list[dict]:
    return [it.model_dump(by_alias=True, mode="json") for it in items]


class CheckoutService:
    """
    Checkout-to-inventory reconciliation.

    Flow:
      1. Collect the items to buy (cart lines or buy-now items) and split
         them into payable / unavailable, item by item.
      2. Group payable lines by seller and price them (line-level rounding).
      3. On confirm with a successful payment: lock the product rows,
         re-check stock, deduct it, create one order per seller and consume
         the cart lines, all in a single transaction.

    Stock never goes below zero: the re-check runs against rows read with
    SELECT ... FOR UPDATE, and every deduction is clamped at 0 anyway.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        address_service: AddressService,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.order_repo = order_repo
        self.address_service = address_service

    # -------- Item collection --------

    @staticmethod
    def _parse_id(raw: str, label: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(raw))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {label} id: {raw}",
            )

    def _load_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        lock: bool = False,
    ) -> Product | None:
        if lock:
            return self.product_repo.get_for_update(session, product_id)
        return self.product_repo.get_by_id(session, product_id)

    @staticmethod
    def _check_line(
        product: Product | None,
        buyer_id: uuid.UUID,
        quantity: int,
        selected_variants,
        claimed: dict[tuple[uuid.UUID, str], int],
        product_id: uuid.UUID | None = None,
        cart_item_id: uuid.UUID | None = None,
    ) -> CheckoutLine | UnavailableItem:
        """
        Validate one requested item; the first failing rule wins.

        `claimed` tracks quantities already accepted earlier in the same
        request per stock pool (product + combination, or product alone for
        flat stock), so repeated lines cannot oversell.
        """

        def unavailable(message: str, available: int = 0):
            return UnavailableItem(
                title=product.title if product else "Unknown product",
                message=message,
                available_stock=max(0, available),
                product_id=product.id if product else product_id,
                cart_item_id=cart_item_id,
                selected_variants=normalize_selected_variants(selected_variants),
            )

        if product is None or not product.is_active:
            return unavailable("Product is no longer available")

        if product.seller_id == buyer_id:
            return unavailable("You cannot purchase your own products")

        option = find_variant_option(product, selected_variants)
        if not option.ok:
            return unavailable(option.message)

        claim_key = (product.id, option.stock_key)
        available = option.quantity - claimed.get(claim_key, 0)

        if available <= 0:
            return unavailable("Out of stock", 0)

        if quantity > available:
            return unavailable(f"Only {available} item(s) left in stock", available)

        claimed[claim_key] = claimed.get(claim_key, 0) + quantity
        return CheckoutLine(
            cart_item_id=cart_item_id,
            product_id=product.id,
            seller_id=product.seller_id,
            title=product.title,
            unit_price=option.price,
            quantity=quantity,
            selected_variants=option.selections,
            variant_key=option.key,
            variant_sku=option.sku,
            available_stock=option.quantity,
            line_total=round2(option.price * quantity),
        )

    def collect_items(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        request: CheckoutRequest,
    ) -> CheckoutCollection:
        """
        Split the requested items into payable and unavailable ones.
        Read-only.
        """
        collection = CheckoutCollection()
        claimed: dict[tuple[uuid.UUID, str], int] = {}

        def record(result):
            if isinstance(result, CheckoutLine):
                collection.payable_items.append(result)
            else:
                collection.unavailable_items.append(result)

        if request.source == "cart":
            cart = self.cart_repo.get_active_cart(session, buyer_id)
            cart_items = self.cart_repo.list_items(session, cart.id) if cart else []

            if request.cart_item_ids:
                by_id = {it.id: it for it in cart_items}
                wanted = dict.fromkeys(
                    self._parse_id(raw, "cart item") for raw in request.cart_item_ids
                )
                selected = []
                for item_id in wanted:
                    if item_id in by_id:
                        selected.append(by_id[item_id])
                    else:
                        record(
                            UnavailableItem(
                                title="Unknown item",
                                message="Cart item not found",
                                cart_item_id=item_id,
                            )
                        )
            else:
                selected = cart_items

            for it in selected:
                product = self._load_product(session, it.product_id)
                record(
                    self._check_line(
                        product,
                        buyer_id,
                        it.quantity,
                        it.selected_variants,
                        claimed,
                        product_id=it.product_id,
                        cart_item_id=it.id,
                    )
                )
            return collection

        if not request.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="items are required for buy_now checkout",
            )

        for item in request.items:
            product_id = self._parse_id(item.product_id, "product")
            product = self._load_product(session, product_id)
            record(
                self._check_line(
                    product,
                    buyer_id,
                    item.quantity,
                    item.selected_variants,
                    claimed,
                    product_id=product_id,
                )
            )
        return collection

    # -------- Grouping and pricing --------

    @staticmethod
    def group_by_seller(lines: list[CheckoutLine]) -> list[CheckoutGroup]:
        """
        One group per seller, in order of first appearance. Subtotals are
        the rounded sum of already-rounded line totals.
        """
        grouped: dict[uuid.UUID, list[CheckoutLine]] = {}
        for line in lines:
            grouped.setdefault(line.seller_id, []).append(line)

        return [
            CheckoutGroup(
                seller_id=seller_id,
                items=items,
                subtotal_amount=round2(sum(it.line_total for it in items)),
            )
            for seller_id, items in grouped.items()
        ]

    @staticmethod
    def compute_totals(groups: list[CheckoutGroup]) -> CheckoutTotals:
        subtotal = round2(sum(g.subtotal_amount for g in groups))
        return CheckoutTotals(
            item_count=sum(it.quantity for g in groups for it in g.items),
            subtotal_amount=subtotal,
            total_amount=subtotal,
        )

    # -------- Preview --------

    def preview(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        request: CheckoutRequest,
    ) -> CheckoutPreviewResponse:
        collection = self.collect_items(session, buyer_id, request)
        groups = self.group_by_seller(collection.payable_items)
        payable_count = len(collection.payable_items)

        return CheckoutPreviewResponse(
            source=request.source,
            groups=groups,
            totals=self.compute_totals(groups),
            payable_item_count=payable_count,
            out_of_stock_items=collection.unavailable_items,
            can_proceed=payable_count > 0,
        )

    # -------- Confirm --------

    def _recheck_stock(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        lines: list[CheckoutLine],
    ) -> list[UnavailableItem]:
        """
        Lock every product row involved and validate the lines again against
        the locked values. Returns the lines that no longer fit.
        """
        claimed: dict[tuple[uuid.UUID, str], int] = {}
        conflicts: list[UnavailableItem] = []

        for product_id in sorted({line.product_id for line in lines}, key=str):
            self._load_product(session, product_id, lock=True)

        for line in lines:
            product = self.product_repo.get_by_id(session, line.product_id)
            result = self._check_line(
                product,
                buyer_id,
                line.quantity,
                line.selected_variants,
                claimed,
                product_id=line.product_id,
                cart_item_id=line.cart_item_id,
            )
            if isinstance(result, UnavailableItem):
                conflicts.append(result)
        return conflicts

    def _deduct_stock(self, session: Session, lines: list[CheckoutLine]) -> None:
        """
        Decrement stock per line, clamped at 0.

        The option is resolved again the way stock was checked: lines drawn
        from a combination decrement it and recompute the aggregate, lines
        drawn from flat stock decrement quantity and stock.
        """
        for line in lines:
            product = self.product_repo.get_by_id(session, line.product_id)
            if product is None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Product {line.product_id} no longer exists",
                )

            option = find_variant_option(product, line.selected_variants)
            if not option.ok:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Variant {line.variant_key or '(none)'} of {product.title} no longer exists",
                )

            if option.stock_key:
                combinations = normalize_variant_combinations(product.variant_combinations)
                matched = next(c for c in combinations if c["key"] == option.stock_key)
                matched["quantity"] = max(0, matched["quantity"] - line.quantity)
                product.variant_combinations = combinations
                sync_product_stock(product)
            else:
                product.quantity = max(0, product.quantity - line.quantity)
                product.stock = max(0, product.stock - line.quantity)

            product.updated_at = datetime.now(timezone.utc)
            self.product_repo.stage(session, product)

    def _create_orders(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        lines: list[CheckoutLine],
        final_status: str,
        shipping_address: dict | None = None,
    ) -> list[Order]:
        """
        One order per seller, each with a snapshot of its lines and of the
        shipping address.
        """
        orders: list[Order] = []
        now = datetime.now(timezone.utc).isoformat()

        for group in self.group_by_seller(lines):
            history = [{"status": "created", "timestamp": now, "note": "Order placed at checkout"}]
            if final_status != "created":
                note = "Payment succeeded" if final_status == "paid" else "Payment failed"
                history.append({"status": final_status, "timestamp": now, "note": note})

            order = self.order_repo.create_order(
                session,
                Order(
                    buyer_id=buyer_id,
                    seller_id=group.seller_id,
                    subtotal_amount=group.subtotal_amount,
                    total_amount=group.subtotal_amount,
                    status=final_status,
                    status_history=history,
                    shipping_address=dict(shipping_address) if shipping_address else None,
                ),
            )
            self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=line.product_id,
                        title=line.title,
                        unit_price=line.unit_price,
                        quantity=line.quantity,
                        line_total=line.line_total,
                        selected_variants=line.selected_variants,
                        variant_sku=line.variant_sku,
                    )
                    for line in group.items
                ],
            )
            orders.append(order)
        return orders

    def _consume_cart_items(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        lines: list[CheckoutLine],
    ) -> None:
        cart = self.cart_repo.get_active_cart(session, buyer_id)
        if cart is None:
            return

        bought = {line.cart_item_id for line in lines if line.cart_item_id}
        consumed = [it for it in self.cart_repo.list_items(session, cart.id) if it.id in bought]
        self.cart_repo.delete_items(session, consumed)
        recalculate_cart_totals(session, self.cart_repo, cart)

    def confirm(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        request: CheckoutConfirmRequest,
    ) -> CheckoutConfirmResponse:
        """
        Place the orders.

        - 400 when nothing is payable
        - 404 when `address_id` is not one of the buyer's addresses; without
          it the buyer's default address (if any) is shipped to
        - 409 when stock changed between collection and deduction; nothing
          is written in that case
        - failed payment simulation: orders are recorded as `failed`, no
          stock is deducted and the cart is left untouched
        - unavailable items are reported next to the created orders
        """
        collection = self.collect_items(session, buyer_id, request)
        payable = collection.payable_items

        if not payable:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "No purchasable items",
                    "outOfStockItems": _dump_items(collection.unavailable_items),
                },
            )

        address_id = (
            self._parse_id(request.address_id, "address") if request.address_id else None
        )
        shipping_address = self.address_service.resolve_for_checkout(session, buyer_id, address_id)

        paid = request.payment_simulation == "success"
        final_status = "paid" if paid else "failed"

        try:
            if paid:
                conflicts = self._recheck_stock(session, buyer_id, payable)
                if conflicts:
                    logger.warning(
                        f"Checkout conflict for buyer {buyer_id}: "
                        f"{len(conflicts)} item(s) changed before deduction"
                    )
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail={
                            "message": "Stock changed before your order could be placed",
                            "outOfStockItems": _dump_items(conflicts),
                        },
                    )
                self._deduct_stock(session, payable)

            orders = self._create_orders(
                session, buyer_id, payable, final_status, shipping_address
            )

            if paid and request.source == "cart":
                self._consume_cart_items(session, buyer_id, payable)

            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info(
            f"Checkout for buyer {buyer_id}: payment {final_status}, "
            f"{len(orders)} order(s), {len(collection.unavailable_items)} unavailable item(s)"
        )

        return CheckoutConfirmResponse(
            success=paid,
            payment_status=final_status,
            orders=[
                CheckoutOrderSummary(
                    id=o.id,
                    status=o.status,
                    total_amount=o.total_amount,
                    seller_id=o.seller_id,
                )
                for o in orders
            ],
            out_of_stock_items=collection.unavailable_items,
            redirect_to=(
                settings.CHECKOUT_SUCCESS_REDIRECT if paid else settings.CHECKOUT_FAILURE_REDIRECT
            ),
        )

    def create_legacy_order(
        self,
        session: Session,
        buyer_id: uuid.UUID,
        payload: LegacyOrderCreate,
    ) -> CheckoutConfirmResponse:
        """
        Old `POST /orders` contract: a buy-now checkout that always pays.
        """
        request = CheckoutConfirmRequest(
            source="buy_now",
            items=payload.items,
            payment_simulation="success",
            address_id=payload.address_id,
        )
        return self.confirm(session, buyer_id, request)
