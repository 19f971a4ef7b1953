# marketplace/services/review_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.core.inventory import round2
from marketplace.models.review import Review
from marketplace.models.user import User
from marketplace.repositories.order_repo import OrderRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.review_repo import ReviewRepository
from marketplace.repositories.user_repo import UserRepository
from marketplace.schemas.common import Pagination
from marketplace.schemas.review import (
    AdminReviewPage,
    AdminReviewRead,
    RatingSummary,
    ReviewCreate,
    ReviewFlag,
    ReviewFlagResult,
    ReviewPage,
    ReviewRead,
    SellerResponseCreate,
)

logger = logging.getLogger(__name__)

# orders that never went through payment cannot be reviewed
UNREVIEWABLE_ORDER_STATUSES = {"created", "failed"}


def review_type_for(rating: int) -> str:
    if rating >= 4:
        return "positive"
    if rating == 3:
        return "neutral"
    return "negative"


def _avg(value) -> float | None:
    return round2(float(value)) if value is not None else None


class ReviewService:
    """
    Buyer reviews, public listings with rating summaries, flagging,
    seller responses and admin moderation.

    Every create or removal recomputes the product's rating and the
    seller's reputation score from the remaining reviews.
    """

    def __init__(
        self,
        review_repo: ReviewRepository,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
    ):
        self.review_repo = review_repo
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.user_repo = user_repo

    # ---- internal helpers ----

    def _get_review(self, session: Session, review_id: uuid.UUID) -> Review:
        review = self.review_repo.get_by_id(session, review_id)
        if not review:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found",
            )
        return review

    def _get_visible(self, session: Session, review_id: uuid.UUID) -> Review:
        review = self._get_review(session, review_id)
        if review.deleted_at is not None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found",
            )
        return review

    def _summary(self, session: Session, **scope) -> RatingSummary:
        avg, avg1, avg2, avg3, count, positive = self.review_repo.aggregate(session, **scope)
        return RatingSummary(
            average_rating=_avg(avg),
            average_rating1=_avg(avg1),
            average_rating2=_avg(avg2),
            average_rating3=_avg(avg3),
            rating_count=count,
            positive_count=positive if "seller_id" in scope else None,
            positive_rate=(
                round2(positive / count * 100) if "seller_id" in scope and count else None
            ),
        )

    def _refresh_ratings(self, session: Session, review: Review) -> None:
        """Recompute product rating and seller reputation (no commit)."""
        product = self.product_repo.get_by_id(session, review.product_id)
        if product:
            summary = self._summary(session, product_id=product.id)
            product.average_rating = summary.average_rating or 0
            product.rating_count = summary.rating_count
            self.product_repo.stage(session, product)

        seller = self.user_repo.get_by_id(session, review.seller_id)
        if seller:
            summary = self._summary(session, seller_id=seller.id)
            seller.reputation_score = summary.average_rating or 0
            session.add(seller)

    # ---- buyer operations ----

    def create_review(self, session: Session, reviewer: User, payload: ReviewCreate) -> Review:
        order = self.order_repo.get_by_id(session, payload.order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        if order.buyer_id != reviewer.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only buyer of the order can leave a review",
            )
        if order.status in UNREVIEWABLE_ORDER_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot review a {order.status} order",
            )

        items = self.order_repo.list_items_for_order(session, order.id)
        if not any(item.product_id == payload.product_id for item in items):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product not found in the given order",
            )

        if self.review_repo.find_existing(session, order.id, payload.product_id, reviewer.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Review already exists for this product/order by you",
            )

        data = payload.model_dump(exclude={"type"})
        review = self.review_repo.stage(
            session,
            Review(
                **data,
                reviewer_id=reviewer.id,
                seller_id=order.seller_id,
                type=payload.type or review_type_for(payload.rating),
            ),
        )
        self._refresh_ratings(session, review)
        session.commit()
        session.refresh(review)

        logger.info(f"Review {review.id} ({review.type}) left by {reviewer.id} on product {review.product_id}")
        return review

    def flag_review(
        self,
        session: Session,
        user: User,
        review_id: uuid.UUID,
        payload: ReviewFlag,
    ) -> ReviewFlagResult:
        review = self._get_visible(session, review_id)
        if str(user.id) in review.flagged_by:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You already flagged this review",
            )

        review.flagged = True
        review.flagged_by = [*review.flagged_by, str(user.id)]
        review.flag_reason = payload.reason
        review = self.review_repo.save(session, review)
        return ReviewFlagResult(id=review.id, flagged=True, flag_count=len(review.flagged_by))

    # ---- seller operations ----

    def respond(
        self,
        session: Session,
        seller: User,
        review_id: uuid.UUID,
        payload: SellerResponseCreate,
    ) -> Review:
        """
        Public answer from the reviewed seller. Answering again replaces the
        text and marks the response as edited.
        """
        review = self._get_visible(session, review_id)
        if review.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the reviewed seller can respond",
            )

        if review.seller_response:
            review.seller_response_edited = True
        review.seller_response = payload.response
        review.seller_response_at = datetime.now(timezone.utc)
        return self.review_repo.save(session, review)

    # ---- public reads ----

    def get_review(self, session: Session, review_id: uuid.UUID) -> Review:
        return self._get_visible(session, review_id)

    def list_for_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> ReviewPage:
        rows, total = self.review_repo.list_visible(
            session, product_id=product_id, skip=(page - 1) * limit, limit=limit
        )
        return ReviewPage(
            data=[ReviewRead.model_validate(r, from_attributes=True) for r in rows],
            pagination=Pagination.build(page, limit, total),
            summary=self._summary(session, product_id=product_id),
        )

    def list_for_seller(
        self,
        session: Session,
        seller_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> ReviewPage:
        """
        Seller feedback page; the summary adds the positive share in percent.
        """
        rows, total = self.review_repo.list_visible(
            session, seller_id=seller_id, skip=(page - 1) * limit, limit=limit
        )
        return ReviewPage(
            data=[ReviewRead.model_validate(r, from_attributes=True) for r in rows],
            pagination=Pagination.build(page, limit, total),
            summary=self._summary(session, seller_id=seller_id),
        )

    # ---- admin operations ----

    @staticmethod
    def _admin_read(review: Review) -> AdminReviewRead:
        return AdminReviewRead.model_validate(
            {**review.model_dump(), "flag_count": len(review.flagged_by)}
        )

    def list_for_admin(
        self,
        session: Session,
        review_filter: str = "all",
        page: int = 1,
        limit: int = 50,
    ) -> AdminReviewPage:
        rows, total = self.review_repo.list_for_admin(
            session, review_filter, skip=(page - 1) * limit, limit=limit
        )
        return AdminReviewPage(
            data=[self._admin_read(r) for r in rows],
            pagination=Pagination.build(page, limit, total),
        )

    def delete_review(self, session: Session, admin: User, review_id: uuid.UUID) -> AdminReviewRead:
        """
        Soft delete; the review drops out of listings and rating summaries.
        """
        review = self._get_review(session, review_id)
        if review.deleted_at is None:
            review.deleted_at = datetime.now(timezone.utc)
            review.deleted_by = admin.id
            self.review_repo.stage(session, review)
            self._refresh_ratings(session, review)
            session.commit()
            session.refresh(review)
            logger.info(f"Review {review.id} removed by admin {admin.id}")
        return self._admin_read(review)
