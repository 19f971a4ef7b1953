# marketplace/services/voucher_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.core.inventory import round2
from marketplace.models.user import User
from marketplace.models.voucher import Voucher, VoucherRequest
from marketplace.repositories.voucher_repo import VoucherRepository
from marketplace.schemas.common import Pagination
from marketplace.schemas.voucher import (
    VoucherApproval,
    VoucherRead,
    VoucherRequestApprove,
    VoucherRequestCreate,
    VoucherRequestPage,
    VoucherRequestRead,
    VoucherRequestReject,
    VoucherStatusUpdate,
    VoucherValidateRequest,
    VoucherValidation,
)

logger = logging.getLogger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    # Some backends hand back naive datetimes; they are stored as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def calculate_discount(voucher: Voucher, total_amount: float) -> float:
    """
    Percentage (optionally capped) or fixed discount, never more than the
    order total and never negative.
    """
    if total_amount <= 0:
        return 0.0

    if voucher.type == "percentage":
        discount = total_amount * voucher.value / 100
        if voucher.max_discount_amount is not None:
            discount = min(discount, voucher.max_discount_amount)
    else:
        discount = voucher.value

    return round2(max(0.0, min(discount, total_amount)))


def check_voucher(
    voucher: Voucher | None,
    total_amount: float,
    user_usage_count: int,
    now: datetime | None = None,
) -> str | None:
    """
    Return the reason the voucher cannot be applied, or None when it can.
    """
    now = now or datetime.now(timezone.utc)

    if voucher is None or not voucher.is_active:
        return "Voucher is invalid or inactive"

    start = as_utc(voucher.start_date)
    end = as_utc(voucher.end_date)

    if start and now < start:
        return "Voucher is not active yet"
    if end and now > end:
        return "Voucher has expired"

    if voucher.usage_limit and voucher.used_count >= voucher.usage_limit:
        return "Voucher usage limit reached"

    if total_amount < (voucher.min_order_value or 0):
        minimum = voucher.min_order_value
        if float(minimum).is_integer():
            minimum = int(minimum)
        return f"Minimum order value is {minimum}"

    if voucher.per_user_limit and user_usage_count >= voucher.per_user_limit:
        return "You have reached this voucher usage limit"

    return None


class VoucherService:
    """
    Seller voucher requests, admin review and voucher validation.

    Codes are unique across vouchers and pending requests.
    """

    def __init__(self, voucher_repo: VoucherRepository):
        self.voucher_repo = voucher_repo

    # ---- internal helpers ----

    def _get_request(self, session: Session, request_id: uuid.UUID) -> VoucherRequest:
        request = self.voucher_repo.get_request(session, request_id)
        if not request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Voucher request not found",
            )
        return request

    @staticmethod
    def _ensure_pending(request: VoucherRequest, action: str) -> None:
        if request.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only pending requests can be {action}",
            )

    # ---- seller operations ----

    def request_voucher(
        self,
        session: Session,
        seller: User,
        payload: VoucherRequestCreate,
    ) -> VoucherRequest:
        start = as_utc(payload.start_date) or datetime.now(timezone.utc)
        end = as_utc(payload.end_date)
        if end <= start:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="end_date must be after start_date",
            )

        if self.voucher_repo.get_by_code(session, payload.code) or (
            self.voucher_repo.get_pending_request_by_code(session, payload.code)
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Voucher code already exists or is awaiting approval",
            )

        data = payload.model_dump(exclude={"start_date", "end_date"})
        request = VoucherRequest(
            seller_id=seller.id,
            status="pending",
            start_date=start,
            end_date=end,
            **data,
        )
        return self.voucher_repo.save_request(session, request)

    def list_my_requests(
        self,
        session: Session,
        seller: User,
        status_filter: str | None = None,
    ) -> list[VoucherRequest]:
        return self.voucher_repo.list_requests_for_seller(session, seller.id, status_filter)

    def cancel_request(
        self,
        session: Session,
        seller: User,
        request_id: uuid.UUID,
    ) -> VoucherRequest:
        request = self._get_request(session, request_id)
        if request.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to cancel this request",
            )
        self._ensure_pending(request, "cancelled")

        request.status = "cancelled"
        return self.voucher_repo.save_request(session, request)

    def list_my_vouchers(
        self,
        session: Session,
        seller: User,
        is_active: bool | None = None,
    ) -> list[Voucher]:
        return self.voucher_repo.list_for_seller(session, seller.id, is_active)

    def set_voucher_status(
        self,
        session: Session,
        seller: User,
        voucher_id: uuid.UUID,
        payload: VoucherStatusUpdate,
    ) -> Voucher:
        voucher = self.voucher_repo.get_by_id(session, voucher_id)
        if not voucher:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Voucher not found",
            )
        if voucher.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to update this voucher",
            )

        voucher.is_active = payload.is_active
        return self.voucher_repo.save_voucher(session, voucher)

    # ---- admin operations ----

    def list_requests(
        self,
        session: Session,
        status_filter: str = "pending",
        page: int = 1,
        limit: int = 20,
    ) -> VoucherRequestPage:
        """
        Paginated review queue; status="all" disables the filter.
        """
        wanted = None if status_filter == "all" else status_filter
        requests, total = self.voucher_repo.list_requests(
            session, wanted, skip=(page - 1) * limit, limit=limit
        )
        return VoucherRequestPage(
            data=[VoucherRequestRead.model_validate(r, from_attributes=True) for r in requests],
            pagination=Pagination.build(page, limit, total),
        )

    def approve_request(
        self,
        session: Session,
        admin: User,
        request_id: uuid.UUID,
        payload: VoucherRequestApprove,
    ) -> VoucherApproval:
        """
        Turn a pending request into an active voucher.

        409 when a voucher with the same code already exists.
        """
        request = self._get_request(session, request_id)
        self._ensure_pending(request, "approved")

        if self.voucher_repo.get_by_code(session, request.code):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Voucher code already exists",
            )

        voucher = self.voucher_repo.stage_voucher(
            session,
            Voucher(
                seller_id=request.seller_id,
                code=request.code,
                type=request.type,
                value=request.value,
                min_order_value=request.min_order_value,
                max_discount_amount=request.max_discount_amount,
                usage_limit=request.usage_limit,
                per_user_limit=request.per_user_limit,
                start_date=request.start_date,
                end_date=request.end_date,
                is_active=True,
                created_by=admin.id,
                created_from_request=request.id,
            ),
        )

        request.status = "approved"
        request.reviewed_by = admin.id
        request.reviewed_at = datetime.now(timezone.utc)
        request.admin_notes = payload.admin_notes
        request.voucher_id = voucher.id
        request = self.voucher_repo.save_request(session, request)
        session.refresh(voucher)

        logger.info(f"Voucher {voucher.code} approved by admin {admin.id} for seller {voucher.seller_id}")

        return VoucherApproval(
            request=VoucherRequestRead.model_validate(request, from_attributes=True),
            voucher=VoucherRead.model_validate(voucher, from_attributes=True),
        )

    def reject_request(
        self,
        session: Session,
        admin: User,
        request_id: uuid.UUID,
        payload: VoucherRequestReject,
    ) -> VoucherRequest:
        request = self._get_request(session, request_id)
        self._ensure_pending(request, "rejected")

        request.status = "rejected"
        request.reviewed_by = admin.id
        request.reviewed_at = datetime.now(timezone.utc)
        request.rejection_reason = payload.rejection_reason
        request.admin_notes = payload.admin_notes
        request = self.voucher_repo.save_request(session, request)

        logger.info(f"Voucher request {request.id} rejected by admin {admin.id}")
        return request

    # ---- validation ----

    def validate_voucher(
        self,
        session: Session,
        user: User,
        payload: VoucherValidateRequest,
    ) -> VoucherValidation:
        """
        Check a code against an order total and price the discount.
        Nothing is redeemed here.
        """
        code = payload.code.strip().upper()
        voucher = self.voucher_repo.get_by_code(session, code, payload.seller_id)
        if not voucher:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Voucher not found",
            )

        usage_count = self.voucher_repo.count_usages(session, voucher.id, user.id)
        reason = check_voucher(voucher, payload.total_amount, usage_count)
        if reason:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=reason,
            )

        discount = calculate_discount(voucher, payload.total_amount)
        return VoucherValidation(
            voucher_id=voucher.id,
            seller_id=voucher.seller_id,
            voucher_code=voucher.code,
            discount_amount=discount,
            final_amount=round2(payload.total_amount - discount),
        )
