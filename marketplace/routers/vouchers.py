# marketplace/routers/vouchers.py
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin, require_auth, require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.voucher_repo import VoucherRepository
from marketplace.schemas.voucher import (
    VoucherApproval,
    VoucherRead,
    VoucherRequestApprove,
    VoucherRequestCreate,
    VoucherRequestPage,
    VoucherRequestRead,
    VoucherRequestReject,
    VoucherRequestStatus,
    VoucherStatusUpdate,
    VoucherValidateRequest,
    VoucherValidation,
)
from marketplace.services.voucher_service import VoucherService

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])

voucher_repo = VoucherRepository()
service = VoucherService(voucher_repo)


# -------- Seller endpoints --------


@router.post(
    "/requests",
    response_model=VoucherRequestRead,
    status_code=status.HTTP_201_CREATED,
)
def request_voucher(
    payload: VoucherRequestCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    """
    Submit a voucher for admin approval.

    409 when the code is already used by a voucher or a pending request.
    """
    return service.request_voucher(session, current_user, payload)


@router.get("/requests/mine", response_model=list[VoucherRequestRead])
def list_my_voucher_requests(
    status_filter: VoucherRequestStatus | None = Query(default=None, alias="status"),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.list_my_requests(session, current_user, status_filter)


@router.post("/requests/{request_id}/cancel", response_model=VoucherRequestRead)
def cancel_voucher_request(
    request_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.cancel_request(session, current_user, request_id)


@router.get("/mine", response_model=list[VoucherRead])
def list_my_vouchers(
    is_active: bool | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.list_my_vouchers(session, current_user, is_active)


@router.patch("/{voucher_id}/status", response_model=VoucherRead)
def set_voucher_status(
    voucher_id: uuid.UUID,
    payload: VoucherStatusUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    """
    Pause or resume one of the seller's own vouchers.
    """
    return service.set_voucher_status(session, current_user, voucher_id, payload)


# -------- Admin endpoints --------


@router.get("/requests", response_model=VoucherRequestPage)
def list_voucher_requests(
    status_filter: VoucherRequestStatus | Literal["all"] = Query(default="pending", alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.list_requests(session, status_filter, page, limit)


@router.post("/requests/{request_id}/approve", response_model=VoucherApproval)
def approve_voucher_request(
    request_id: uuid.UUID,
    payload: VoucherRequestApprove | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Create the voucher described by a pending request.
    """
    return service.approve_request(
        session, current_user, request_id, payload or VoucherRequestApprove()
    )


@router.post("/requests/{request_id}/reject", response_model=VoucherRequestRead)
def reject_voucher_request(
    request_id: uuid.UUID,
    payload: VoucherRequestReject,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.reject_request(session, current_user, request_id, payload)


# -------- Any authenticated user --------


@router.post("/validate", response_model=VoucherValidation)
def validate_voucher(
    payload: VoucherValidateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Check a code against an order total; returns the discount it would give.
    """
    return service.validate_voucher(session, current_user, payload)
