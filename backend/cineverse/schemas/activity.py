"""
Activity feed schemas.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

from cineverse.schemas.common import APIResponse, Pagination, UserPreview


class ActivityTarget(BaseModel):
    """Tagged union: `id` is a UUID for entity targets, a TMDB id for movies."""

    type: Literal["review", "list", "user", "movie"]
    id: UUID | int


class ActivityResponse(BaseModel):
    id: UUID
    user: UserPreview
    type: str
    target: ActivityTarget
    movie_id: int | None = None
    metadata: dict = {}
    is_public: bool = True
    created_at: datetime


class FeedResponse(APIResponse):
    activities: list[ActivityResponse]
    pagination: Pagination


class PurgeResponse(APIResponse):
    deleted: int
