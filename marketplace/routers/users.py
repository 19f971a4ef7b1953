# marketplace/routers/users.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from marketplace.core.auth import require_auth, require_admin
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.user_repo import UserRepository
from marketplace.schemas.user import Role, UserRead, UserProfileUpdate, UserRoleUpdate
from marketplace.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile (auto-provisioned on first call).
    """
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's display name.
    """
    return service.update_profile(session, current_user, payload)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    role: Role | None = None,
):
    """
    List users (admin only), optionally filtered by role.
    """
    return service.list_users(session, skip, limit, role)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_user(session, user_id)


@router.patch("/{user_id}/role", response_model=UserRead)
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Promote or demote a user (admin only). Becoming a seller goes through here.
    """
    return service.change_role(session, admin, user_id, payload)
