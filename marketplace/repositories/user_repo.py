# marketplace/repositories/user_repo.py
import uuid

from sqlmodel import Session, select

from marketplace.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Pure DB operations; no FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def list_users(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        role: str | None = None,
    ) -> list[User]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def save(self, session: Session, user: User) -> User:
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
