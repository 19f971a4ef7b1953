# marketplace/routers/promotions.py
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin, require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.promotion_repo import PromotionRepository
from marketplace.schemas.promotion import (
    DailyDealRequestCreate,
    OutletRequestCreate,
    PromotionApproval,
    PromotionApprove,
    PromotionReject,
    PromotionRequestPage,
    PromotionRequestRead,
    PromotionStatus,
    PromotionType,
)
from marketplace.services.promotion_service import PromotionService

router = APIRouter(prefix="/promotions", tags=["Promotions"])

service = PromotionService(PromotionRepository(), ProductRepository())


# -------- Seller endpoints --------


@router.post(
    "/requests/outlet",
    response_model=PromotionRequestRead,
    status_code=status.HTTP_201_CREATED,
)
def request_outlet(
    payload: OutletRequestCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    """
    Ask to list one of the seller's products in the Brand Outlet.
    Eligibility checks are recorded for the admin, not enforced.
    """
    return service.request_outlet(session, current_user, payload)


@router.post(
    "/requests/daily-deal",
    response_model=PromotionRequestRead,
    status_code=status.HTTP_201_CREATED,
)
def request_daily_deal(
    payload: DailyDealRequestCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.request_daily_deal(session, current_user, payload)


@router.get("/requests/mine", response_model=list[PromotionRequestRead])
def list_my_promotion_requests(
    status_filter: PromotionStatus | None = Query(default=None, alias="status"),
    request_type: PromotionType | None = Query(default=None, alias="type"),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.list_my_requests(session, current_user, status_filter, request_type)


@router.post("/requests/{request_id}/cancel", response_model=PromotionRequestRead)
def cancel_promotion_request(
    request_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.cancel_request(session, current_user, request_id)


# -------- Admin endpoints --------


@router.get("/requests", response_model=PromotionRequestPage)
def list_promotion_requests(
    status_filter: PromotionStatus | Literal["all"] = Query(default="pending", alias="status"),
    request_type: PromotionType | None = Query(default=None, alias="type"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.list_requests(session, status_filter, request_type, page, limit)


@router.post("/requests/{request_id}/approve", response_model=PromotionApproval)
def approve_promotion_request(
    request_id: uuid.UUID,
    payload: PromotionApprove | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    """
    Put the discounted price live on the product.
    """
    return service.approve_request(
        session, current_user, request_id, payload or PromotionApprove()
    )


@router.post("/requests/{request_id}/reject", response_model=PromotionRequestRead)
def reject_promotion_request(
    request_id: uuid.UUID,
    payload: PromotionReject,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.reject_request(session, current_user, request_id, payload)
