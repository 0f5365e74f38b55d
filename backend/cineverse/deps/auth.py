"""
Auth dependencies — shared across all protected endpoints.

The JWT is read from the `Authorization: Bearer` header first and from the
auth cookie second, so both API clients and the browser app work.

Usage in any route:
    from cineverse.deps.auth import get_current_user, get_optional_user, require_admin
    from cineverse.db.models import User

    @router.get("/protected")
    def protected(user: User = Depends(get_current_user)):
        ...
"""
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cineverse.core.config import settings
from cineverse.core.security import InvalidTokenError, TokenExpiredError, decode_access_token
from cineverse.db.models import RoleEnum, User
from cineverse.db.session import get_db

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


def _resolve_user(db: Session, token: str) -> User:
    """Decode *token* and load its active user, raising 401 on any failure."""
    try:
        sub = decode_access_token(token)
    except TokenExpiredError as exc:
        raise _unauthorized(str(exc)) from exc
    except InvalidTokenError as exc:
        raise _unauthorized(str(exc)) from exc

    # Validate sub is a proper UUID string
    try:
        user_id = UUID(sub)
    except (ValueError, AttributeError):
        raise _unauthorized("Invalid token. Please log in again.")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise _unauthorized("User not found or account is inactive.")
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Return the authenticated active User.

    Raises 401 on any failure (missing/invalid/expired token, unknown user,
    inactive account).
    """
    token = _extract_token(request, credentials)
    if token is None:
        raise _unauthorized("Authentication required. Please log in.")
    user = _resolve_user(db, token)
    request.state.user_id = str(user.id)
    return user


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous or bad credentials yield None."""
    token = _extract_token(request, credentials)
    if token is None:
        return None
    try:
        user = _resolve_user(db, token)
    except HTTPException:
        return None
    request.state.user_id = str(user.id)
    return user


def require_role(*roles: RoleEnum):
    """Dependency factory: the current user must hold one of *roles*."""

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions.",
            )
        return current_user

    return _checker


require_critic = require_role(RoleEnum.CRITIC, RoleEnum.ADMIN)
require_admin = require_role(RoleEnum.ADMIN)
