"""
Auth business logic — registration, login, password change, token issuance.

All DB writes go through this layer (not directly in routes).
"""
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cineverse.core.security import create_access_token, hash_password, verify_password
from cineverse.db.models import RoleEnum, User

logger = structlog.get_logger(__name__)

# Roles a user may pick for themselves; admin is granted out-of-band
SELF_ASSIGNABLE_ROLES = (RoleEnum.VIEWER, RoleEnum.CRITIC)


# ── Custom exceptions ────────────────────────────────────────────────────────


class DuplicateUserError(Exception):
    """Raised when signup conflicts with an existing username or email."""

    def __init__(self, field: str) -> None:
        self.field = field
        if field == "username":
            message = "Username already taken."
        elif field == "email":
            message = "Email already registered."
        else:
            message = f"A user with that {field} already exists."
        super().__init__(message)


class InvalidCredentialsError(Exception):
    """Raised when the email/password pair does not match."""


class InactiveAccountError(Exception):
    """Raised when a deactivated account tries to log in."""


# ── Service functions ────────────────────────────────────────────────────────


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    role: str | None = None,
    first_name: str = "",
    last_name: str = "",
) -> User:
    """
    Register a new user.

    - Normalises username and email (lowercase strip).
    - Unknown or privileged roles fall back to viewer.
    - Critics get their badge immediately.
    - Raises DuplicateUserError on a taken username or email.
    """
    normalised_username = username.strip().lower()
    normalised_email = email.strip().lower()

    if db.query(User.id).filter(User.username == normalised_username).first():
        raise DuplicateUserError("username")
    if db.query(User.id).filter(User.email == normalised_email).first():
        raise DuplicateUserError("email")

    user_role = RoleEnum(role) if role in {r.value for r in SELF_ASSIGNABLE_ROLES} else RoleEnum.VIEWER
    is_critic = user_role == RoleEnum.CRITIC

    user = User(
        username=normalised_username,
        email=normalised_email,
        password_hash=hash_password(password),
        role=user_role,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        critic_badge=is_critic,
        critic_since=datetime.now(timezone.utc) if is_critic else None,
    )

    db.add(user)

    try:
        db.flush()  # trigger INSERT; raises on a racing duplicate
    except IntegrityError as exc:
        db.rollback()
        error_str = str(exc.orig).lower()
        if "username" in error_str:
            raise DuplicateUserError("username") from exc
        if "email" in error_str:
            raise DuplicateUserError("email") from exc
        raise DuplicateUserError("username or email") from exc

    db.commit()
    db.refresh(user)
    logger.info("user_registered", user_id=str(user.id), role=user_role.value)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Verify credentials and return the User, stamping last_login.

    Raises InvalidCredentialsError or InactiveAccountError.
    """
    user = (
        db.query(User)
        .filter(User.email == email.strip().lower())
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid email or password.")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated. Please contact support.")

    user.last_login = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    """Replace the user's password after re-checking the current one."""
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect.")

    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    logger.info("password_changed", user_id=str(user.id))


def issue_access_token(user: User) -> str:
    """Create a signed JWT with the user's ID as the subject claim."""
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return create_access_token(subject=str(user.id), role=role)
