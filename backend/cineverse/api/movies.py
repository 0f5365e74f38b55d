"""
Movies API — /movies
────────────────────
Read-only proxy to the TMDB catalog, plus local review data on the detail page.

Endpoints:
  GET /movies/trending                 — Trending movies (?time_window=day|week)
  GET /movies/popular                  — Popular movies
  GET /movies/top-rated                — Top rated movies
  GET /movies/now-playing              — Now playing
  GET /movies/upcoming                 — Upcoming releases
  GET /movies/search                   — Search by title (?query, ?year)
  GET /movies/discover                 — Filtered discovery (?genre, ?year, ?sort_by, ?min_rating, ?max_rating)
  GET /movies/genres                   — Genre list
  GET /movies/config/images            — TMDB image configuration
  GET /movies/{movie_id}               — Details + credits + trailers + similar + local reviews/stats
  GET /movies/{movie_id}/credits       — Full cast and crew
  GET /movies/{movie_id}/videos        — All videos
  GET /movies/{movie_id}/recommendations — Recommendations
"""
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from cineverse.db.models import SavedCollectionEnum, User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_optional_user
from cineverse.schemas.movies import (
    CreditsResponse,
    GenresResponse,
    ImageConfigResponse,
    MovieDetailResponse,
    MoviePageResponse,
    VideosResponse,
)
from cineverse.services.review_service import get_movie_reviews, get_movie_stats, has_reviewed
from cineverse.services.tmdb_service import (
    TMDBConfigError,
    TMDBNotFoundError,
    TMDBService,
    TMDBUpstreamError,
)
from cineverse.services.user_service import is_saved

router = APIRouter()

DETAIL_REVIEW_LIMIT = 5


def get_tmdb_service() -> TMDBService:
    """Dependency: a configured TMDB client, or 503 when no API key is set."""
    try:
        return TMDBService()
    except TMDBConfigError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def _upstream_error(exc: Exception, message: str) -> HTTPException:
    if isinstance(exc, TMDBNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found.")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)


_TMDB_ERRORS = (TMDBNotFoundError, TMDBUpstreamError)


# ── Listings ──────────────────────────────────────────────────────────────────

@router.get("/trending", response_model=MoviePageResponse)
async def trending(
    time_window: str = Query("week", pattern="^(day|week)$"),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.trending(time_window)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch trending movies.") from exc


@router.get("/popular", response_model=MoviePageResponse)
async def popular(
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.popular(page)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch popular movies.") from exc


@router.get("/top-rated", response_model=MoviePageResponse)
async def top_rated(
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.top_rated(page)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch top rated movies.") from exc


@router.get("/now-playing", response_model=MoviePageResponse)
async def now_playing(
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.now_playing(page)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch now playing movies.") from exc


@router.get("/upcoming", response_model=MoviePageResponse)
async def upcoming(
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.upcoming(page)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch upcoming movies.") from exc


@router.get("/search", response_model=MoviePageResponse)
async def search(
    query: str = Query(..., min_length=1, description="Search query"),
    page: int = Query(1, ge=1, le=500),
    year: int | None = Query(None, ge=1870, le=2100),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.search(query, page=page, year=year)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to search movies.") from exc


@router.get("/discover", response_model=MoviePageResponse)
async def discover(
    page: int = Query(1, ge=1, le=500),
    genre: str | None = Query(None),
    year: int | None = Query(None, ge=1870, le=2100),
    sort_by: str = Query("popularity.desc"),
    min_rating: float | None = Query(None, ge=0, le=10),
    max_rating: float | None = Query(None, ge=0, le=10),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.discover(
            page=page,
            genre=genre,
            year=year,
            sort_by=sort_by,
            min_rating=min_rating,
            max_rating=max_rating,
        )
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to discover movies.") from exc


@router.get("/genres", response_model=GenresResponse)
async def genres(tmdb: TMDBService = Depends(get_tmdb_service)) -> dict:
    try:
        return {"genres": await tmdb.genres()}
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch genres.") from exc


@router.get("/config/images", response_model=ImageConfigResponse)
async def image_config(tmdb: TMDBService = Depends(get_tmdb_service)) -> dict:
    try:
        return {"images": await tmdb.image_config()}
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch configuration.") from exc


# ── Single movie ──────────────────────────────────────────────────────────────

@router.get("/{movie_id}", response_model=MovieDetailResponse)
async def movie_detail(
    movie_id: int = Path(..., gt=0),
    viewer: User | None = Depends(get_optional_user),
    tmdb: TMDBService = Depends(get_tmdb_service),
    db: Session = Depends(get_db),
) -> dict:
    """
    TMDB details bundle merged with local data:
      - the 5 newest published reviews and the rating stats
      - the viewer's watchlist / favorite / reviewed status (null when anonymous)
    """
    try:
        movie = await tmdb.get_movie_bundle(movie_id)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch movie details.") from exc

    viewer_id = viewer.id if viewer else None
    user_status = None
    if viewer is not None:
        user_status = {
            "in_watchlist": is_saved(db, viewer.id, SavedCollectionEnum.WATCHLIST, movie_id),
            "is_favorite": is_saved(db, viewer.id, SavedCollectionEnum.FAVORITE, movie_id),
            "has_reviewed": has_reviewed(db, viewer.id, movie_id),
        }

    return {
        "movie": movie,
        "local_reviews": get_movie_reviews(
            db, movie_id, page=1, limit=DETAIL_REVIEW_LIMIT, viewer_id=viewer_id
        )["reviews"],
        "local_stats": get_movie_stats(db, movie_id),
        "user_status": user_status,
    }


@router.get("/{movie_id}/credits", response_model=CreditsResponse)
async def movie_credits(
    movie_id: int = Path(..., gt=0),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.credits(movie_id)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch credits.") from exc


@router.get("/{movie_id}/videos", response_model=VideosResponse)
async def movie_videos(
    movie_id: int = Path(..., gt=0),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return {"videos": await tmdb.videos(movie_id)}
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch videos.") from exc


@router.get("/{movie_id}/recommendations", response_model=MoviePageResponse)
async def movie_recommendations(
    movie_id: int = Path(..., gt=0),
    page: int = Query(1, ge=1, le=500),
    tmdb: TMDBService = Depends(get_tmdb_service),
) -> dict:
    try:
        return await tmdb.recommendations(movie_id, page=page)
    except _TMDB_ERRORS as exc:
        raise _upstream_error(exc, "Failed to fetch recommendations.") from exc
