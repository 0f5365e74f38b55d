"""
Auth API — /auth
─────────────────
Endpoints:
  POST /auth/register  — Create account, set the token cookie (201)
  POST /auth/login     — Authenticate with email + password, set the token cookie
  POST /auth/logout    — Clear the token cookie
  GET  /auth/me        — Current user's full profile (null when anonymous)
  PUT  /auth/password  — Change password (requires auth)
  GET  /auth/validate  — Report whether the presented token is valid
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from cineverse.core.config import settings
from cineverse.db.models import User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user, get_optional_user
from cineverse.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    ValidateResponse,
)
from cineverse.schemas.common import MessageResponse
from cineverse.services.auth_service import (
    DuplicateUserError,
    InactiveAccountError,
    InvalidCredentialsError,
    authenticate_user,
    change_password,
    create_user,
    issue_access_token,
)
from cineverse.services.user_service import project_profile

router = APIRouter()


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=not settings.is_dev,
        samesite="lax",
    )


# ── Routes ────────────────────────────────────────────────────────────────────


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> dict:
    """
    Create a new user account and log it in.

    Returns 201 + full profile + token on success.
    Returns 409 if the username or email already exists.
    """
    try:
        user = create_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            first_name=payload.first_name,
            last_name=payload.last_name,
        )
    except DuplicateUserError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    token = issue_access_token(user)
    _set_auth_cookie(response, token)
    return {
        "message": "Registration successful!",
        "user": project_profile(db, user, user),
        "token": token,
    }


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> dict:
    """Authenticate with email + password, return a JWT and set it as a cookie."""
    try:
        user = authenticate_user(db, email=payload.email, password=payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except InactiveAccountError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    token = issue_access_token(user)
    _set_auth_cookie(response, token)
    return {
        "message": "Login successful!",
        "user": project_profile(db, user, user),
        "token": token,
    }


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> dict:
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"message": "Logged out successfully."}


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    if current_user is None:
        return {"user": None}
    return {"user": project_profile(db, current_user, current_user)}


@router.put("/password", response_model=MessageResponse)
def update_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        change_password(db, current_user, payload.current_password, payload.new_password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return {"message": "Password changed successfully."}


@router.get("/validate", response_model=ValidateResponse)
def validate(
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    if current_user is None:
        return {"valid": False, "user": None}
    return {"valid": True, "user": project_profile(db, current_user, current_user)}
