# marketplace/repositories/promotion_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from marketplace.models.promotion import PromotionRequest


class PromotionRepository:
    """
    Data access layer for seller promotion requests.
    """

    def get_by_id(self, session: Session, request_id: uuid.UUID) -> PromotionRequest | None:
        return session.get(PromotionRequest, request_id)

    def list_for_seller(
        self,
        session: Session,
        seller_id: uuid.UUID,
        status: str | None = None,
        request_type: str | None = None,
    ) -> list[PromotionRequest]:
        stmt = select(PromotionRequest).where(PromotionRequest.seller_id == seller_id)
        if status:
            stmt = stmt.where(PromotionRequest.status == status)
        if request_type:
            stmt = stmt.where(PromotionRequest.request_type == request_type)
        stmt = stmt.order_by(PromotionRequest.created_at.desc())
        return session.exec(stmt).all()

    def list_requests(
        self,
        session: Session,
        status: str | None = None,
        request_type: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[PromotionRequest], int]:
        conditions = []
        if status:
            conditions.append(PromotionRequest.status == status)
        if request_type:
            conditions.append(PromotionRequest.request_type == request_type)

        stmt = (
            select(PromotionRequest)
            .where(*conditions)
            .order_by(PromotionRequest.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(PromotionRequest).where(*conditions)
        return session.exec(stmt).all(), session.exec(count_stmt).one()

    def save(self, session: Session, request: PromotionRequest) -> PromotionRequest:
        session.add(request)
        session.commit()
        session.refresh(request)
        return request
