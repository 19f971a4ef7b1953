# marketplace/services/complaint_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.complaint import Complaint
from marketplace.models.user import User
from marketplace.repositories.complaint_repo import ComplaintRepository
from marketplace.repositories.order_repo import OrderRepository
from marketplace.schemas.complaint import (
    ComplaintCreate,
    ComplaintEscalate,
    ComplaintResolve,
    ComplaintRespond,
)

logger = logging.getLogger(__name__)

COMPLAINT_TRANSITIONS: dict[str, set[str]] = {
    "open": {"in_review", "agreed", "rejected", "sent_to_admin"},
    "in_review": {"agreed", "rejected", "sent_to_admin"},
    "rejected": {"sent_to_admin"},
    "sent_to_admin": {"agreed", "rejected"},
    "agreed": set(),
}


class ComplaintService:
    """
    Buyer complaints about orders.

    The seller answers first; the buyer may escalate to an admin, whose
    resolution is final.
    """

    def __init__(self, complaint_repo: ComplaintRepository, order_repo: OrderRepository):
        self.complaint_repo = complaint_repo
        self.order_repo = order_repo

    # ---- internal helpers ----

    def _get_complaint(self, session: Session, complaint_id: uuid.UUID) -> Complaint:
        complaint = self.complaint_repo.get_by_id(session, complaint_id)
        if not complaint:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Complaint not found",
            )
        return complaint

    @staticmethod
    def _is_active(complaint: Complaint) -> bool:
        return complaint.resolution is None and complaint.status != "agreed"

    def _move(
        self,
        complaint: Complaint,
        actor: User,
        new_status: str,
        action: str,
        note: str = "",
    ) -> Complaint:
        current = complaint.status
        if new_status not in COMPLAINT_TRANSITIONS.get(current, set()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid complaint transition: {current} -> {new_status}",
            )

        now = datetime.now(timezone.utc)
        complaint.status = new_status
        complaint.history = [
            *complaint.history,
            {"action_by": str(actor.id), "action": action, "note": note, "at": now.isoformat()},
        ]
        complaint.updated_at = now
        return complaint

    # ---- buyer ----

    def create_complaint(
        self,
        session: Session,
        buyer: User,
        payload: ComplaintCreate,
    ) -> Complaint:
        """
        Rules:
          - the order must exist and belong to the caller
          - at most one unresolved complaint per order
        """
        order = self.order_repo.get_by_id(session, payload.order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        if order.buyer_id != buyer.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only complain about your own orders",
            )

        existing = self.complaint_repo.list_for_order(session, order.id)
        if any(self._is_active(c) for c in existing):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An open complaint already exists for this order",
            )

        now = datetime.now(timezone.utc)
        complaint = Complaint(
            order_id=order.id,
            buyer_id=buyer.id,
            seller_id=order.seller_id,
            reason=payload.reason,
            content=payload.content,
            status="open",
            history=[
                {"action_by": str(buyer.id), "action": "created", "note": "", "at": now.isoformat()}
            ],
        )
        return self.complaint_repo.save(session, complaint)

    def escalate(
        self,
        session: Session,
        buyer: User,
        complaint_id: uuid.UUID,
        payload: ComplaintEscalate,
    ) -> Complaint:
        complaint = self._get_complaint(session, complaint_id)
        if complaint.buyer_id != buyer.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the buyer can escalate this complaint",
            )

        self._move(complaint, buyer, "sent_to_admin", "sent_to_admin", payload.note)
        return self.complaint_repo.save(session, complaint)

    # ---- buyer / seller ----

    def list_mine(
        self,
        session: Session,
        user: User,
        role: str = "buyer",
        status_filter: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Complaint]:
        return self.complaint_repo.list_for_user(
            session, user.id, role, status_filter, skip, limit
        )

    def get_complaint(
        self,
        session: Session,
        user: User,
        complaint_id: uuid.UUID,
    ) -> Complaint:
        complaint = self._get_complaint(session, complaint_id)
        if user.role != "admin" and user.id not in (complaint.buyer_id, complaint.seller_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to view this complaint",
            )
        return complaint

    # ---- seller ----

    def respond(
        self,
        session: Session,
        seller: User,
        complaint_id: uuid.UUID,
        payload: ComplaintRespond,
    ) -> Complaint:
        complaint = self._get_complaint(session, complaint_id)
        if complaint.seller_id != seller.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the seller can respond to this complaint",
            )

        self._move(complaint, seller, payload.action, payload.action, payload.note)
        return self.complaint_repo.save(session, complaint)

    # ---- admin ----

    def list_escalated(self, session: Session) -> list[Complaint]:
        return self.complaint_repo.list_by_status(session, "sent_to_admin")

    def resolve(
        self,
        session: Session,
        admin: User,
        complaint_id: uuid.UUID,
        payload: ComplaintResolve,
    ) -> Complaint:
        """
        Final decision: approved -> agreed, rejected -> rejected.
        """
        complaint = self._get_complaint(session, complaint_id)
        if complaint.resolution:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Complaint already resolved",
            )

        new_status = "agreed" if payload.resolution == "approved" else "rejected"
        self._move(
            complaint,
            admin,
            new_status,
            f"admin_{payload.resolution}",
            payload.note,
        )
        complaint.resolution = payload.resolution
        complaint.resolution_note = payload.note
        complaint.resolved_by = admin.id
        complaint.resolved_at = complaint.updated_at
        complaint = self.complaint_repo.save(session, complaint)

        logger.info(f"Complaint {complaint.id} {payload.resolution} by admin {admin.id}")
        return complaint
