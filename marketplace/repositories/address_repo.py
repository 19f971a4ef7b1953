# marketplace/repositories/address_repo.py
import uuid

from sqlmodel import Session, select

from marketplace.models.address import Address


class AddressRepository:
    """
    Data access layer for the address book.
    Every lookup is scoped to the owning user.
    """

    def get_for_user(
        self,
        session: Session,
        address_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Address | None:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        return session.exec(stmt).first()

    def list_for_user(self, session: Session, user_id: uuid.UUID) -> list[Address]:
        """Default address first, then newest first."""
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return session.exec(stmt).all()

    def get_default(self, session: Session, user_id: uuid.UUID) -> Address | None:
        stmt = select(Address).where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
        return session.exec(stmt).first()

    def get_latest(self, session: Session, user_id: uuid.UUID) -> Address | None:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.created_at.desc())
        )
        return session.exec(stmt).first()

    def unset_defaults(self, session: Session, user_id: uuid.UUID) -> None:
        """Clear the default flag on all of a user's addresses (no commit)."""
        stmt = select(Address).where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
        for address in session.exec(stmt).all():
            address.is_default = False
            session.add(address)
        session.flush()

    def save(self, session: Session, address: Address) -> Address:
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    def delete(self, session: Session, address: Address) -> None:
        session.delete(address)
        session.flush()
