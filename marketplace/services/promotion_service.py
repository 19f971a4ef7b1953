# marketplace/services/promotion_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.product import Product
from marketplace.models.promotion import PromotionRequest
from marketplace.models.user import User
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.promotion_repo import PromotionRepository
from marketplace.schemas.common import Pagination
from marketplace.schemas.product import ProductRead
from marketplace.schemas.promotion import (
    DailyDealRequestCreate,
    OutletRequestCreate,
    PromotionApproval,
    PromotionApprove,
    PromotionReject,
    PromotionRequestPage,
    PromotionRequestRead,
)
from marketplace.services.voucher_service import as_utc

logger = logging.getLogger(__name__)

OUTLET_MIN_LISTING_AGE_DAYS = 60
OUTLET_MIN_DISCOUNT_PERCENT = 30
DEAL_MIN_DISCOUNT_PERCENT = 10
DEAL_MAX_DISCOUNT_PERCENT = 90


def calculate_discount_percent(original_price: float, discounted_price: float) -> int:
    if original_price <= 0 or discounted_price < 0 or discounted_price >= original_price:
        return 0
    return round((original_price - discounted_price) / original_price * 100)


def check_outlet_eligibility(product: Product, discount_percent: int, now: datetime | None = None) -> dict:
    """
    Informational checks shown to the reviewing admin; they do not block
    the request.
    """
    now = now or datetime.now(timezone.utc)
    age_days = (now - as_utc(product.created_at)).days
    checks = {
        "listing_age_days": age_days,
        "listing_age_met": age_days >= OUTLET_MIN_LISTING_AGE_DAYS,
        "discount_met": discount_percent >= OUTLET_MIN_DISCOUNT_PERCENT,
    }
    checks["all_passed"] = checks["listing_age_met"] and checks["discount_met"]
    return checks


def validate_deal_parameters(
    start_date: datetime,
    end_date: datetime,
    quantity_limit: int,
    discount_percent: int,
    now: datetime | None = None,
) -> list[str]:
    now = now or datetime.now(timezone.utc)
    start, end = as_utc(start_date), as_utc(end_date)
    errors = []
    if start >= end:
        errors.append("Start date must be before end date")
    if end <= now:
        errors.append("End date must be in the future")
    if quantity_limit <= 0:
        errors.append("Quantity limit must be greater than 0")
    if not DEAL_MIN_DISCOUNT_PERCENT <= discount_percent <= DEAL_MAX_DISCOUNT_PERCENT:
        errors.append("Discount must be between 10% and 90%")
    return errors


class PromotionService:
    """
    Seller requests to run a product as a Brand Outlet item or a Daily Deal,
    and the admin review that applies the discounted price to the product.
    """

    def __init__(self, promotion_repo: PromotionRepository, product_repo: ProductRepository):
        self.promotion_repo = promotion_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_request(self, session: Session, request_id: uuid.UUID) -> PromotionRequest:
        request = self.promotion_repo.get_by_id(session, request_id)
        if not request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Promotion request not found",
            )
        return request

    @staticmethod
    def _ensure_pending(request: PromotionRequest, action: str) -> None:
        if request.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only pending requests can be {action}",
            )

    @staticmethod
    def _ensure_not_promoted(product: Product) -> None:
        if product.promotion_type != "normal":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product already has an active promotion",
            )

    def _promotable_product(self, session: Session, seller: User, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if product.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not own this product",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product must be active to request promotion",
            )
        self._ensure_not_promoted(product)
        return product

    # ---- seller operations ----

    def request_outlet(
        self,
        session: Session,
        seller: User,
        payload: OutletRequestCreate,
    ) -> PromotionRequest:
        product = self._promotable_product(session, seller, payload.product_id)

        if payload.discounted_price >= product.price:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Discounted price must be lower than original price",
            )
        if payload.discounted_price <= 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Discounted price must be greater than 0",
            )

        discount = calculate_discount_percent(product.price, payload.discounted_price)
        request = PromotionRequest(
            request_type="outlet",
            product_id=product.id,
            seller_id=seller.id,
            original_price=product.price,
            discounted_price=payload.discounted_price,
            discount_percent=discount,
            eligibility_checks=check_outlet_eligibility(product, discount),
        )
        return self.promotion_repo.save(session, request)

    def request_daily_deal(
        self,
        session: Session,
        seller: User,
        payload: DailyDealRequestCreate,
    ) -> PromotionRequest:
        """
        400 {"message": "Invalid deal parameters", "errors": [...]} lists
        every failed rule.
        """
        product = self._promotable_product(session, seller, payload.product_id)

        if payload.discounted_price <= 0 or payload.discounted_price >= product.price:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid discounted price",
            )

        discount = calculate_discount_percent(product.price, payload.discounted_price)
        errors = validate_deal_parameters(
            payload.start_date, payload.end_date, payload.quantity_limit, discount
        )
        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Invalid deal parameters", "errors": errors},
            )

        request = PromotionRequest(
            request_type="daily_deal",
            product_id=product.id,
            seller_id=seller.id,
            original_price=product.price,
            discounted_price=payload.discounted_price,
            discount_percent=discount,
            start_date=as_utc(payload.start_date),
            end_date=as_utc(payload.end_date),
            quantity_limit=payload.quantity_limit,
            eligibility_checks={"valid_dates": True, "all_passed": True},
        )
        return self.promotion_repo.save(session, request)

    def list_my_requests(
        self,
        session: Session,
        seller: User,
        status_filter: str | None = None,
        request_type: str | None = None,
    ) -> list[PromotionRequest]:
        return self.promotion_repo.list_for_seller(session, seller.id, status_filter, request_type)

    def cancel_request(
        self,
        session: Session,
        seller: User,
        request_id: uuid.UUID,
    ) -> PromotionRequest:
        request = self._get_request(session, request_id)
        if request.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to cancel this request",
            )
        if request.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Can only cancel pending requests",
            )

        request.status = "cancelled"
        return self.promotion_repo.save(session, request)

    # ---- admin operations ----

    def list_requests(
        self,
        session: Session,
        status_filter: str | None = "pending",
        request_type: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> PromotionRequestPage:
        """
        Paginated review queue; status="all" disables the status filter.
        """
        wanted = None if status_filter == "all" else status_filter
        requests, total = self.promotion_repo.list_requests(
            session, wanted, request_type, skip=(page - 1) * limit, limit=limit
        )
        return PromotionRequestPage(
            data=[PromotionRequestRead.model_validate(r, from_attributes=True) for r in requests],
            pagination=Pagination.build(page, limit, total),
        )

    def approve_request(
        self,
        session: Session,
        admin: User,
        request_id: uuid.UUID,
        payload: PromotionApprove,
    ) -> PromotionApproval:
        """
        Apply the request to its product: the discounted price replaces
        `price` and the previous price is kept in `original_price`.
        """
        request = self._get_request(session, request_id)
        self._ensure_pending(request, "approved")

        product = self.product_repo.get_by_id(session, request.product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Associated product not found",
            )
        self._ensure_not_promoted(product)

        now = datetime.now(timezone.utc)
        request.status = "approved"
        request.reviewed_by = admin.id
        request.reviewed_at = now
        request.admin_notes = payload.admin_notes
        session.add(request)

        product.promotion_type = request.request_type
        product.original_price = request.original_price
        product.price = request.discounted_price
        product.discount_percent = request.discount_percent
        if request.request_type == "daily_deal":
            product.deal_start_date = request.start_date
            product.deal_end_date = request.end_date
            product.deal_quantity_limit = request.quantity_limit
        product.updated_at = now
        self.product_repo.stage(session, product)

        session.commit()
        session.refresh(request)
        session.refresh(product)

        logger.info(
            f"Promotion {request.request_type} approved by admin {admin.id} for product {product.id}"
        )
        return PromotionApproval(
            request=PromotionRequestRead.model_validate(request, from_attributes=True),
            product=ProductRead.model_validate(product, from_attributes=True),
        )

    def reject_request(
        self,
        session: Session,
        admin: User,
        request_id: uuid.UUID,
        payload: PromotionReject,
    ) -> PromotionRequest:
        request = self._get_request(session, request_id)
        self._ensure_pending(request, "rejected")

        request.status = "rejected"
        request.reviewed_by = admin.id
        request.reviewed_at = datetime.now(timezone.utc)
        request.rejection_reason = payload.rejection_reason
        request.admin_notes = payload.admin_notes
        request = self.promotion_repo.save(session, request)

        logger.info(f"Promotion request {request.id} rejected by admin {admin.id}")
        return request
