# marketplace/routers/addresses.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from marketplace.core.auth import require_auth
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.address_repo import AddressRepository
from marketplace.schemas.address import AddressCreate, AddressRead, AddressUpdate
from marketplace.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])

repo = AddressRepository()
service = AddressService(repo)


@router.get("", response_model=list[AddressRead])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    The caller's address book, default first.
    """
    return service.list_addresses(session, current_user)


@router.post("", response_model=AddressRead, status_code=status.HTTP_201_CREATED)
def create_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.create_address(session, current_user, payload)


@router.patch("/{address_id}", response_model=AddressRead)
def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.update_address(session, current_user, address_id, payload)


@router.post("/{address_id}/default", response_model=AddressRead)
def set_default_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.set_default(session, current_user, address_id)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    service.delete_address(session, current_user, address_id)
    return None
