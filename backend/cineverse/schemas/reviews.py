"""
Review request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from cineverse.schemas.common import APIResponse, Pagination, UserPreview, strip_text


class CreateReviewRequest(BaseModel):
    """Payload for POST /reviews."""

    movie_id: int = Field(..., gt=0)
    movie_title: str = Field(..., min_length=1, max_length=500)
    movie_poster: str | None = Field(default=None, max_length=500)
    movie_year: int | None = None
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=50, max_length=5000)
    rating: int = Field(..., ge=1, le=10)
    contains_spoilers: bool = False
    tags: list[str] = []

    @field_validator("movie_title", "title", "content", mode="before")
    @classmethod
    def trim(cls, v):
        return strip_text(v)


class UpdateReviewRequest(BaseModel):
    """Partial update — only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=50, max_length=5000)
    rating: int | None = Field(default=None, ge=1, le=10)
    contains_spoilers: bool | None = None
    tags: list[str] | None = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def trim(cls, v):
        return strip_text(v)


class CommentRequest(BaseModel):
    content: str = Field(..., max_length=1000)


class ReviewFlagsRequest(BaseModel):
    """Admin moderation payload."""

    is_featured: bool | None = None
    is_published: bool | None = None


class CommentResponse(BaseModel):
    id: UUID
    user: UserPreview
    content: str
    created_at: datetime


class ReviewResponse(BaseModel):
    """A single review."""

    id: UUID
    user: UserPreview
    movie_id: int
    movie_title: str
    movie_poster: str = ""
    movie_year: int | None = None
    title: str
    content: str
    rating: int
    contains_spoilers: bool = False
    tags: list[str] = []
    is_published: bool = True
    is_featured: bool = False
    is_critic_review: bool = False
    critic_score: int | None = None
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False
    created_at: datetime
    updated_at: datetime
    comments: list[CommentResponse] | None = None


class MovieStats(BaseModel):
    average_rating: float
    total_reviews: int
    critic_average: float | None = None


class ReviewEnvelope(APIResponse):
    message: str | None = None
    review: ReviewResponse


class ReviewListResponse(APIResponse):
    """Paginated list of reviews."""

    reviews: list[ReviewResponse]
    pagination: Pagination


class MovieReviewsResponse(ReviewListResponse):
    stats: MovieStats


class LikeToggleResponse(APIResponse):
    is_liked: bool
    likes_count: int


class CommentsResponse(APIResponse):
    message: str | None = None
    comments: list[CommentResponse]
