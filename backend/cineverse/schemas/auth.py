"""
Auth request/response schemas.
"""
import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from cineverse.schemas.common import APIResponse
from cineverse.schemas.users import ProfileResponse

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class RegisterRequest(BaseModel):
    """Payload for POST /auth/register."""

    username: str
    email: EmailStr
    password: str
    role: str | None = None
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3 or len(v) > 20:
            raise ValueError("Username must be between 3 and 20 characters")
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username may only contain letters, digits, and underscores")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class AuthResponse(APIResponse):
    """Returned after register / login. The token is also set as a cookie."""

    message: str
    user: ProfileResponse
    token: str
    token_type: str = "bearer"


class MeResponse(APIResponse):
    user: ProfileResponse | None = None


class ValidateResponse(APIResponse):
    valid: bool
    user: ProfileResponse | None = None
