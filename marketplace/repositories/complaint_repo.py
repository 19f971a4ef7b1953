# marketplace/repositories/complaint_repo.py
import uuid

from sqlmodel import Session, select

from marketplace.models.complaint import Complaint


class ComplaintRepository:
    """
    Data access layer for Complaint.
    """

    def get_by_id(self, session: Session, complaint_id: uuid.UUID) -> Complaint | None:
        return session.get(Complaint, complaint_id)

    def list_for_order(self, session: Session, order_id: uuid.UUID) -> list[Complaint]:
        stmt = select(Complaint).where(Complaint.order_id == order_id)
        return session.exec(stmt).all()

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        role: str = "buyer",
        status: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Complaint]:
        column = Complaint.seller_id if role == "seller" else Complaint.buyer_id
        stmt = select(Complaint).where(column == user_id)
        if status:
            stmt = stmt.where(Complaint.status == status)
        stmt = stmt.order_by(Complaint.updated_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def list_by_status(
        self,
        session: Session,
        status: str,
        limit: int = 200,
    ) -> list[Complaint]:
        stmt = (
            select(Complaint)
            .where(Complaint.status == status)
            .order_by(Complaint.updated_at.desc())
            .limit(limit)
        )
        return session.exec(stmt).all()

    def save(self, session: Session, complaint: Complaint) -> Complaint:
        session.add(complaint)
        session.commit()
        session.refresh(complaint)
        return complaint
