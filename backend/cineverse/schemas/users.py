"""
User / profile request/response schemas.
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cineverse.schemas.activity import ActivityResponse
from cineverse.schemas.common import APIResponse, Pagination, UserPreview
from cineverse.schemas.lists import ListSummary
from cineverse.schemas.reviews import ReviewResponse


class SavedMovieItem(BaseModel):
    movie_id: int
    added_at: datetime


class PrivacySettings(BaseModel):
    show_email: bool = False
    show_phone: bool = False
    show_date_of_birth: bool = False
    show_watchlist: bool = True
    show_favorites: bool = True


class PrivacySettingsUpdate(BaseModel):
    show_email: bool | None = None
    show_phone: bool | None = None
    show_date_of_birth: bool | None = None
    show_watchlist: bool | None = None
    show_favorites: bool | None = None


class ProfileResponse(BaseModel):
    """
    A user profile as seen by the viewer.

    Privacy-gated fields are null when hidden; owner-only fields are null for
    everyone else.
    """

    id: UUID
    username: str
    role: str
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    avatar_url: str
    location: str = ""
    website: str = ""
    critic_badge: bool = False
    specialization: list[str] = []
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime

    email: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    watchlist: list[SavedMovieItem] | None = None
    favorites: list[SavedMovieItem] | None = None
    watchlist_count: int | None = None
    favorites_count: int | None = None

    critic_since: datetime | None = None
    privacy_settings: PrivacySettings | None = None
    last_login: datetime | None = None
    updated_at: datetime | None = None


class ProfilePageResponse(APIResponse):
    """GET /users/{id} — profile plus recent content."""

    profile: ProfileResponse
    reviews: list[ReviewResponse]
    lists: list[ListSummary]
    activities: list[ActivityResponse]
    is_own_profile: bool
    is_following: bool


class UpdateProfileRequest(BaseModel):
    """Partial update payload for the authenticated user profile."""

    model_config = ConfigDict(extra="ignore")

    # Accepted only so a rename attempt can be rejected explicitly
    username: str | None = None

    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=500)
    avatar: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=30)
    date_of_birth: date | None = None
    specialization: list[str] | None = None
    privacy_settings: PrivacySettingsUpdate | None = None


class ProfileUpdateResponse(APIResponse):
    message: str = "Profile updated successfully."
    user: ProfileResponse


class DirectoryUser(UserPreview):
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    specialization: list[str] = []
    created_at: datetime
    followers_count: int | None = None


class UserSearchResponse(APIResponse):
    users: list[DirectoryUser]
    pagination: Pagination


class UserListResponse(APIResponse):
    users: list[DirectoryUser]


class FollowListItem(UserPreview):
    """One user in followers/following lists."""

    first_name: str = ""
    last_name: str = ""
    followed_at: datetime


class FollowListResponse(APIResponse):
    users: list[FollowListItem]


class FollowToggleResponse(APIResponse):
    message: str
    is_following: bool
    followers_count: int


class SaveMovieRequest(BaseModel):
    """Optional display data recorded on the activity when a movie is saved."""

    movie_title: str | None = Field(default=None, max_length=500)
    movie_poster: str | None = Field(default=None, max_length=500)


class WatchlistToggleResponse(APIResponse):
    message: str
    in_watchlist: bool


class FavoriteToggleResponse(APIResponse):
    message: str
    is_favorite: bool
