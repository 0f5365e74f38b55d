"""
Shared response pieces: envelope base, pagination, author previews.
"""
from uuid import UUID

from pydantic import BaseModel


class APIResponse(BaseModel):
    """Base for every successful top-level response body."""

    success: bool = True


class MessageResponse(APIResponse):
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UserPreview(BaseModel):
    """Author card embedded in reviews, lists, comments and activities."""

    id: UUID
    username: str
    avatar_url: str
    role: str
    critic_badge: bool = False


def strip_text(value):
    """`mode="before"` helper: length limits apply to the trimmed text."""
    return value.strip() if isinstance(value, str) else value
