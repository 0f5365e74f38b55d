"""
Catalog gateway response schemas.

TMDB payloads are passed through as-is; only the envelopes are typed.
"""
from pydantic import BaseModel

from cineverse.schemas.common import APIResponse
from cineverse.schemas.reviews import MovieStats, ReviewResponse


class MoviePageResponse(APIResponse):
    movies: list[dict]
    page: int
    total_pages: int
    total_results: int = 0


class UserMovieStatus(BaseModel):
    in_watchlist: bool
    is_favorite: bool
    has_reviewed: bool


class MovieDetailResponse(APIResponse):
    movie: dict
    local_reviews: list[ReviewResponse]
    local_stats: MovieStats
    user_status: UserMovieStatus | None = None


class CreditsResponse(APIResponse):
    cast: list[dict]
    crew: list[dict]


class VideosResponse(APIResponse):
    videos: list[dict]


class GenresResponse(APIResponse):
    genres: list[dict]


class ImageConfigResponse(APIResponse):
    images: dict
