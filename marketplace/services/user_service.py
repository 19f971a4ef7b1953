# marketplace/services/user_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.user import User
from marketplace.repositories.user_repo import UserRepository
from marketplace.schemas.user import UserProfileUpdate, UserRoleUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Profile and role management.

    Identity comes from the auth provider, so the only thing a user edits
    here is the display name. Admins promote buyers to sellers.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def update_profile(
        self,
        session: Session,
        current_user: User,
        payload: UserProfileUpdate,
    ) -> User:
        """
        Apply a profile edit. `email` may be echoed back by the client but
        must match the token email.
        """
        if payload.email and payload.email.lower() != current_user.email.lower():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email cannot be changed",
            )

        if payload.name is not None:
            current_user.name = payload.name

        return self.repo.save(session, current_user)

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> list[User]:
        return self.repo.list_users(session, skip=skip, limit=limit, role=role)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def change_role(
        self,
        session: Session,
        admin: User,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        """
        Change a user's role. Admins cannot demote themselves, so the
        platform never ends up without an admin by accident.
        """
        user = self.get_user(session, user_id)
        if user.id == admin.id and payload.role != "admin":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot change their own role",
            )

        logger.info(f"Role change for user {user.id}: {user.role} -> {payload.role}")
        user.role = payload.role
        return self.repo.save(session, user)
