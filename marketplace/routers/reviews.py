# marketplace/routers/reviews.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin, require_auth, require_customer, require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.order_repo import OrderRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.review_repo import ReviewRepository
from marketplace.repositories.user_repo import UserRepository
from marketplace.schemas.review import (
    AdminReviewFilter,
    AdminReviewPage,
    AdminReviewRead,
    ReviewCreate,
    ReviewFlag,
    ReviewFlagResult,
    ReviewPage,
    ReviewRead,
    SellerResponseCreate,
)
from marketplace.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])

service = ReviewService(
    ReviewRepository(), OrderRepository(), ProductRepository(), UserRepository()
)


@router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Review a product from one of the caller's paid orders.

    409 when the caller already reviewed that product for that order.
    """
    return service.create_review(session, current_user, payload)


@router.get("/product/{product_id}", response_model=ReviewPage)
def list_product_reviews(
    product_id: uuid.UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return service.list_for_product(session, product_id, page, limit)


@router.get("/seller/{seller_id}", response_model=ReviewPage)
def list_seller_reviews(
    seller_id: uuid.UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return service.list_for_seller(session, seller_id, page, limit)


# -------- Admin endpoints --------


@router.get("/admin/all", response_model=AdminReviewPage)
def list_all_reviews(
    review_filter: AdminReviewFilter = Query(default="all", alias="filter"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.list_for_admin(session, review_filter, page, limit)


@router.delete("/{review_id}", response_model=AdminReviewRead)
def delete_review(
    review_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.delete_review(session, current_user, review_id)


# -------- Single review --------


@router.get("/{review_id}", response_model=ReviewRead)
def get_review(review_id: uuid.UUID, session: Session = Depends(get_session)):
    return service.get_review(session, review_id)


@router.post("/{review_id}/flag", response_model=ReviewFlagResult)
def flag_review(
    review_id: uuid.UUID,
    payload: ReviewFlag,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.flag_review(session, current_user, review_id, payload)


@router.post("/{review_id}/response", response_model=ReviewRead)
def respond_to_review(
    review_id: uuid.UUID,
    payload: SellerResponseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.respond(session, current_user, review_id, payload)
