# marketplace/services/address_service.py
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.address import Address
from marketplace.models.user import User
from marketplace.repositories.address_repo import AddressRepository
from marketplace.schemas.address import AddressCreate, AddressUpdate


def to_shipping_address(address: Address) -> dict:
    """
    Snapshot an address-book entry into the order's shipping address shape.
    `street` carries the detail line, street and ward; `state` the district.
    """
    street = ", ".join(part for part in (address.detail, address.street, address.ward) if part)
    return {
        "full_name": address.full_name,
        "phone": address.phone,
        "street": street,
        "city": address.city,
        "state": address.district,
        "country": address.country,
    }


class AddressService:
    """
    Address book. Exactly one default per user once they have any address.
    """

    def __init__(self, repo: AddressRepository):
        self.repo = repo

    def _get_owned(self, session: Session, user: User, address_id: uuid.UUID) -> Address:
        address = self.repo.get_for_user(session, address_id, user.id)
        if not address:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Address not found",
            )
        return address

    def list_addresses(self, session: Session, user: User) -> list[Address]:
        return self.repo.list_for_user(session, user.id)

    def create_address(self, session: Session, user: User, payload: AddressCreate) -> Address:
        make_default = payload.is_default or self.repo.get_latest(session, user.id) is None
        if make_default:
            self.repo.unset_defaults(session, user.id)

        address = Address(
            user_id=user.id,
            **payload.model_dump(exclude={"is_default"}),
            is_default=make_default,
        )
        return self.repo.save(session, address)

    def update_address(
        self,
        session: Session,
        user: User,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> Address:
        """
        Partial update. `is_default=false` is ignored: the default only moves
        when another address is made default.
        """
        address = self._get_owned(session, user, address_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if changes.pop("is_default", False):
            self.repo.unset_defaults(session, user.id)
            address.is_default = True

        for field, value in changes.items():
            setattr(address, field, value.strip() if isinstance(value, str) else value)
        address.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, address)

    def set_default(self, session: Session, user: User, address_id: uuid.UUID) -> Address:
        address = self._get_owned(session, user, address_id)
        self.repo.unset_defaults(session, user.id)
        address.is_default = True
        address.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, address)

    def delete_address(self, session: Session, user: User, address_id: uuid.UUID) -> None:
        """
        Remove an address; when it was the default, the newest remaining
        address takes over.
        """
        address = self._get_owned(session, user, address_id)
        was_default = address.is_default
        self.repo.delete(session, address)

        if was_default:
            successor = self.repo.get_latest(session, user.id)
            if successor:
                successor.is_default = True
                session.add(successor)
        session.commit()

    def resolve_for_checkout(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID | None,
    ) -> dict | None:
        """
        Shipping address for a new order: the chosen address (404 when it is
        not the buyer's), else the buyer's default, else none.
        """
        if address_id is not None:
            address = self.repo.get_for_user(session, address_id, user_id)
            if not address:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Address not found",
                )
        else:
            address = self.repo.get_default(session, user_id)

        return to_shipping_address(address) if address else None
