# marketplace/repositories/review_repo.py
import uuid

from sqlalchemy import case, func
from sqlmodel import Session, select

from marketplace.models.review import Review


class ReviewRepository:
    """
    Data access layer for reviews.
    Public listings and aggregates never include soft-deleted reviews.
    """

    def get_by_id(self, session: Session, review_id: uuid.UUID) -> Review | None:
        return session.get(Review, review_id)

    def find_existing(
        self,
        session: Session,
        order_id: uuid.UUID,
        product_id: uuid.UUID,
        reviewer_id: uuid.UUID,
    ) -> Review | None:
        stmt = select(Review).where(
            Review.order_id == order_id,
            Review.product_id == product_id,
            Review.reviewer_id == reviewer_id,
        )
        return session.exec(stmt).first()

    def list_visible(
        self,
        session: Session,
        *,
        product_id: uuid.UUID | None = None,
        seller_id: uuid.UUID | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Review], int]:
        stmt = select(Review).where(Review.deleted_at == None)  # noqa: E711
        count_stmt = select(func.count()).select_from(Review).where(Review.deleted_at == None)  # noqa: E711
        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)
            count_stmt = count_stmt.where(Review.product_id == product_id)
        if seller_id is not None:
            stmt = stmt.where(Review.seller_id == seller_id)
            count_stmt = count_stmt.where(Review.seller_id == seller_id)

        stmt = stmt.order_by(Review.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all(), session.exec(count_stmt).one()

    def aggregate(
        self,
        session: Session,
        *,
        product_id: uuid.UUID | None = None,
        seller_id: uuid.UUID | None = None,
    ) -> tuple:
        """
        (avg rating, avg rating1, avg rating2, avg rating3, count, positive count)
        over the non-deleted reviews of a product or a seller.
        """
        stmt = select(
            func.avg(Review.rating),
            func.avg(Review.rating1),
            func.avg(Review.rating2),
            func.avg(Review.rating3),
            func.count(Review.id),
            func.coalesce(func.sum(case((Review.type == "positive", 1), else_=0)), 0),
        ).where(Review.deleted_at == None)  # noqa: E711
        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)
        if seller_id is not None:
            stmt = stmt.where(Review.seller_id == seller_id)
        return session.exec(stmt).one()

    def list_for_admin(
        self,
        session: Session,
        review_filter: str = "all",
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Review], int]:
        """
        flagged: flagged and not deleted; deleted: soft-deleted;
        active: not deleted; all: everything.
        """
        conditions = []
        if review_filter == "flagged":
            conditions = [Review.flagged == True, Review.deleted_at == None]  # noqa: E711,E712
        elif review_filter == "deleted":
            conditions = [Review.deleted_at != None]  # noqa: E711
        elif review_filter == "active":
            conditions = [Review.deleted_at == None]  # noqa: E711

        stmt = select(Review).where(*conditions)
        count_stmt = select(func.count()).select_from(Review).where(*conditions)
        stmt = stmt.order_by(Review.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all(), session.exec(count_stmt).one()

    def save(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.commit()
        session.refresh(review)
        return review

    def stage(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.flush()
        return review
