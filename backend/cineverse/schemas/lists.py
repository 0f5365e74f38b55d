"""
Movie list request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from cineverse.db.models import ListCategoryEnum
from cineverse.schemas.common import APIResponse, Pagination, UserPreview, strip_text


class CreateListRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    category: ListCategoryEnum = ListCategoryEnum.CUSTOM
    is_public: bool = True
    tags: list[str] = []
    cover_image: str = Field(default="", max_length=500)

    @field_validator("title", mode="before")
    @classmethod
    def trim(cls, v):
        return strip_text(v)


class UpdateListRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    category: ListCategoryEnum | None = None
    is_public: bool | None = None
    tags: list[str] | None = None
    cover_image: str | None = Field(default=None, max_length=500)

    @field_validator("title", mode="before")
    @classmethod
    def trim(cls, v):
        return strip_text(v)


class AddMovieRequest(BaseModel):
    movie_id: int = Field(..., gt=0)
    movie_title: str = Field(..., min_length=1, max_length=500)
    movie_poster: str | None = Field(default=None, max_length=500)
    movie_year: int | None = None
    note: str = Field(default="", max_length=200)
    rank: int | None = Field(default=None, ge=1)


class ListEntryResponse(BaseModel):
    movie_id: int
    movie_title: str
    movie_poster: str = ""
    movie_year: int | None = None
    note: str = ""
    rank: int | None = None
    added_at: datetime


class ListSummary(BaseModel):
    """A list without its entries (browse pages, profiles)."""

    id: UUID
    creator: UserPreview
    title: str
    description: str = ""
    category: str
    is_public: bool
    tags: list[str] = []
    cover_image: str = ""
    movie_count: int = 0
    likes_count: int = 0
    followers_count: int = 0
    created_at: datetime
    updated_at: datetime


class ListDetail(ListSummary):
    movies: list[ListEntryResponse] = []


class ListEnvelope(APIResponse):
    message: str | None = None
    list: ListDetail


class ListDetailResponse(APIResponse):
    list: ListDetail
    is_owner: bool
    has_liked: bool
    is_following: bool


class ListPageResponse(APIResponse):
    lists: list[ListSummary]
    pagination: Pagination


class ListCollectionResponse(APIResponse):
    lists: list[ListSummary]


class ListLikeResponse(APIResponse):
    has_liked: bool
    likes_count: int


class ListFollowResponse(APIResponse):
    is_following: bool
    followers_count: int
