"""
Password hashing and JWT token utilities.
Never import DB models here — keep this layer pure.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from cineverse.core.config import settings

# bcrypt context; auto-upgrades deprecated schemes
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenExpiredError(Exception):
    """Raised when a JWT is well-formed but past its expiry."""


class InvalidTokenError(Exception):
    """Raised when a JWT is tampered, malformed or missing its subject."""


# ── Password helpers ──────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return a bcrypt hash of *plain*."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if *plain* matches the stored *hashed* value."""
    return pwd_context.verify(plain, hashed)


# ── JWT helpers ───────────────────────────────────────────────────────────────

def create_access_token(
    subject: Any,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT.

    Args:
        subject: Usually the user's UUID (converted to str).
        role: Optional role claim, informational only; authorization always
              re-reads the role from the user row.
        expires_delta: Override the default expiry from settings.

    Returns:
        Encoded JWT string.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta
        or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload: dict[str, Any] = {"sub": str(subject), "exp": expire}
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Decode a JWT and return the *sub* claim (user UUID string).

    Raises TokenExpiredError for an expired token and InvalidTokenError for
    anything else that fails verification.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired. Please log in again.") from exc
    except JWTError as exc:
        raise InvalidTokenError("Invalid token. Please log in again.") from exc

    sub = payload.get("sub")
    if not sub:
        raise InvalidTokenError("Invalid token. Please log in again.")
    return sub
