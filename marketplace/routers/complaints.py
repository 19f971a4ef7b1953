# marketplace/routers/complaints.py
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin, require_auth, require_customer, require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.complaint_repo import ComplaintRepository
from marketplace.repositories.order_repo import OrderRepository
from marketplace.schemas.complaint import (
    ComplaintCreate,
    ComplaintEscalate,
    ComplaintRead,
    ComplaintResolve,
    ComplaintRespond,
    ComplaintStatus,
)
from marketplace.services.complaint_service import ComplaintService

router = APIRouter(prefix="/complaints", tags=["Complaints"])

complaint_repo = ComplaintRepository()
order_repo = OrderRepository()
service = ComplaintService(complaint_repo, order_repo)


@router.post("", response_model=ComplaintRead, status_code=status.HTTP_201_CREATED)
def create_complaint(
    payload: ComplaintCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Open a complaint about one of the caller's orders.
    """
    return service.create_complaint(session, current_user, payload)


@router.get("/mine", response_model=list[ComplaintRead])
def list_my_complaints(
    role: Literal["buyer", "seller"] = "buyer",
    status_filter: ComplaintStatus | None = Query(default=None, alias="status"),
    skip: int = 0,
    limit: int = Query(default=20, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Complaints the caller filed (`role=buyer`) or received (`role=seller`).
    """
    return service.list_mine(session, current_user, role, status_filter, skip, limit)


@router.get(
    "/escalated",
    response_model=list[ComplaintRead],
    dependencies=[Depends(require_admin)],
)
def list_escalated_complaints(session: Session = Depends(get_session)):
    return service.list_escalated(session)


@router.get("/{complaint_id}", response_model=ComplaintRead)
def get_complaint(
    complaint_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_complaint(session, current_user, complaint_id)


@router.post("/{complaint_id}/respond", response_model=ComplaintRead)
def respond_to_complaint(
    complaint_id: uuid.UUID,
    payload: ComplaintRespond,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_seller),
):
    return service.respond(session, current_user, complaint_id, payload)


@router.post("/{complaint_id}/escalate", response_model=ComplaintRead)
def escalate_complaint(
    complaint_id: uuid.UUID,
    payload: ComplaintEscalate | None = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Send the complaint to an admin.
    """
    return service.escalate(session, current_user, complaint_id, payload or ComplaintEscalate())


@router.post("/{complaint_id}/resolve", response_model=ComplaintRead)
def resolve_complaint(
    complaint_id: uuid.UUID,
    payload: ComplaintResolve,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
):
    return service.resolve(session, current_user, complaint_id, payload)
