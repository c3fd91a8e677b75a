# bakery/core/auth.py
import logging
import uuid
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session

from bakery.core.config import Settings
from bakery.database import get_session, storage_guard
from bakery.models.user import User

logger = logging.getLogger(__name__)

# auto_error=False: a missing Authorization header means "guest", the
# cart endpoints must keep working without a login.
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_app_settings(request: Request) -> Settings:
    """Settings the app factory stored on `app.state`."""
    return request.app.state.settings


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Signature and `exp` are checked; `aud` is not, Supabase projects
    issue several audiences.
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


def _identity(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    sub = claims.get("sub")
    email = claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(sub), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def _default_name_from_email(email: str) -> str:
    """Display name until the customer sets one: the email's local part."""
    return email.split("@", 1)[0][:50]


def _provision(session: Session, user_id: uuid.UUID, email: str) -> User:
    user = User(
        id=user_id,
        email=email,
        name=_default_name_from_email(email),
        role="user",
    )
    with storage_guard(session, "create user profile"):
        session.add(user)
        session.commit()
        session.refresh(user)
    logger.info("Provisioned profile for user %s", user_id)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> User | None:
    """
    The signed-in user, or None for guests.

    The JWT `sub` is the users.id; a valid token without a profile row
    gets one created with role "user" (admins are promoted by hand).
    """
    if credentials is None:
        return None

    user_id, email = _identity(decode_access_token(credentials.credentials, settings))
    user = session.get(User, user_id)
    return user if user is not None else _provision(session, user_id, email)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """401 for guests."""
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """403 unless the user's role is admin."""
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
