"""
Users API — /users
──────────────────
Profiles, follow graph, watchlist / favorites and the user directory.

Endpoints:
  GET    /users                       — Search active users (?search, ?role)
  GET    /users/critics               — Featured critics
  GET    /users/recent                — Recently joined users
  PUT    /users/profile               — Update own profile + privacy settings
  POST   /users/watchlist/{movie_id}  — Toggle a movie on the watchlist
  POST   /users/favorites/{movie_id}  — Toggle a movie in favorites
  GET    /users/{user_id}             — Profile page (privacy-projected)
  POST   /users/{user_id}/follow      — Toggle following a user
  GET    /users/{user_id}/followers   — Followers of a user
  GET    /users/{user_id}/following   — Users a user follows
  GET    /users/{user_id}/reviews     — Published reviews by a user
  DELETE /users/{user_id}             — Deactivate a user (admin)
"""
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from cineverse.db.models import RoleEnum, SavedCollectionEnum, User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user, get_optional_user, require_admin
from cineverse.schemas.common import MessageResponse
from cineverse.schemas.reviews import ReviewListResponse
from cineverse.schemas.users import (
    FavoriteToggleResponse,
    FollowListResponse,
    FollowToggleResponse,
    ProfilePageResponse,
    ProfileUpdateResponse,
    SaveMovieRequest,
    UpdateProfileRequest,
    UserListResponse,
    UserSearchResponse,
    WatchlistToggleResponse,
)
from cineverse.services.review_service import get_user_reviews
from cineverse.services.user_service import (
    ProfileUpdateError,
    SelfFollowError,
    UserNotFoundError,
    deactivate_user,
    get_profile_page,
    list_critics,
    list_followers,
    list_following,
    list_recent_users,
    search_users,
    toggle_follow,
    toggle_saved_movie,
    update_profile,
)

router = APIRouter()


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ── Directory ─────────────────────────────────────────────────────────────────

@router.get("", response_model=UserSearchResponse)
def search_users_endpoint(
    search: str | None = Query(None, max_length=100),
    role: RoleEnum | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> dict:
    return search_users(db, search=search, role=role, page=page, limit=limit)


@router.get("/critics", response_model=UserListResponse)
def critics_endpoint(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
) -> dict:
    return {"users": list_critics(db, limit=limit)}


@router.get("/recent", response_model=UserListResponse)
def recent_users_endpoint(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
) -> dict:
    return {"users": list_recent_users(db, limit=limit)}


# ── Own account ───────────────────────────────────────────────────────────────

@router.put("/profile", response_model=ProfileUpdateResponse)
def update_profile_endpoint(
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        profile = update_profile(db, current_user, payload.model_dump(exclude_unset=True))
    except ProfileUpdateError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {"user": profile}


@router.post("/watchlist/{movie_id}", response_model=WatchlistToggleResponse)
def toggle_watchlist_endpoint(
    movie_id: int = Path(..., gt=0),
    payload: SaveMovieRequest | None = Body(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    payload = payload or SaveMovieRequest()
    in_watchlist = toggle_saved_movie(
        db,
        current_user.id,
        SavedCollectionEnum.WATCHLIST,
        movie_id,
        movie_title=payload.movie_title,
        movie_poster=payload.movie_poster,
    )
    return {
        "in_watchlist": in_watchlist,
        "message": "Added to watchlist." if in_watchlist else "Removed from watchlist.",
    }


@router.post("/favorites/{movie_id}", response_model=FavoriteToggleResponse)
def toggle_favorite_endpoint(
    movie_id: int = Path(..., gt=0),
    payload: SaveMovieRequest | None = Body(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    payload = payload or SaveMovieRequest()
    is_favorite = toggle_saved_movie(
        db,
        current_user.id,
        SavedCollectionEnum.FAVORITE,
        movie_id,
        movie_title=payload.movie_title,
        movie_poster=payload.movie_poster,
    )
    return {
        "is_favorite": is_favorite,
        "message": "Added to favorites." if is_favorite else "Removed from favorites.",
    }


# ── Other users ───────────────────────────────────────────────────────────────

@router.get("/{user_id}", response_model=ProfilePageResponse)
def profile_page_endpoint(
    user_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_profile_page(db, user_id, viewer)
    except UserNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/{user_id}/follow", response_model=FollowToggleResponse)
def toggle_follow_endpoint(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_follow(db, current_user.id, user_id)
    except SelfFollowError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/{user_id}/followers", response_model=FollowListResponse)
def followers_endpoint(user_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return {"users": list_followers(db, user_id)}
    except UserNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/{user_id}/following", response_model=FollowListResponse)
def following_endpoint(user_id: UUID, db: Session = Depends(get_db)) -> dict:
    try:
        return {"users": list_following(db, user_id)}
    except UserNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/{user_id}/reviews", response_model=ReviewListResponse)
def user_reviews_endpoint(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    return get_user_reviews(
        db,
        user_id,
        page=page,
        limit=limit,
        viewer_id=viewer.id if viewer else None,
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def deactivate_user_endpoint(
    user_id: UUID,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    try:
        deactivate_user(db, user_id)
    except UserNotFoundError as exc:
        raise _not_found(exc) from exc
    return {"message": "User deactivated successfully."}
