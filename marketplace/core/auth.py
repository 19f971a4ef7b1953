# marketplace/core/auth.py
import uuid
from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from marketplace.core.config import get_settings
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.user_repo import UserRepository

settings = get_settings()
user_repo = UserRepository()

# Missing Authorization header resolves to a guest instead of failing,
# so catalog routes stay browsable without a session.
bearer_scheme = HTTPBearer(auto_error=False)

SHOPPING_ROLES = ("buyer", "seller")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify a Supabase access token (HS256, exp checked, aud ignored)
    and return its claims.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def identity_from_claims(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    """Pull the (user id, email) pair every marketplace profile is keyed on."""
    sub, email = claims.get("sub"), claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(sub), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def provision_buyer(session: Session, user_id: uuid.UUID, email: str) -> User:
    """
    First request from a new auth account: create a buyer profile named
    after the email's local part. Sellers and admins are promoted later.
    """
    profile = User(
        id=user_id,
        email=email,
        name=email.split("@", 1)[0],
        role="buyer",
    )
    return user_repo.save(session, profile)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    if credentials is None:
        return None

    user_id, email = identity_from_claims(decode_access_token(credentials.credentials))
    user = user_repo.get_by_id(session, user_id)
    if user is None:
        user = provision_buyer(session, user_id, email)
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def _role_guard(allowed: tuple[str, ...], detail: str) -> Callable[..., User]:
    def guard(user: User = Depends(require_auth)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return guard


require_admin = _role_guard(("admin",), "Admin access required")

# Admins pass the seller guard so they can moderate listings.
require_seller = _role_guard(("seller", "admin"), "Seller access required")

# Cart and checkout: accounts that shop. Admins are rejected.
require_customer = _role_guard(SHOPPING_ROLES, "Customer access required")
