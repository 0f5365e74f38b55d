"""
Lists API — /lists
──────────────────
User-curated movie lists.

Endpoints:
  GET    /lists                             — Public lists, newest first (?category)
  GET    /lists/popular                     — Public lists by like count
  GET    /lists/user/{user_id}              — A user's lists (private ones for the owner)
  GET    /lists/{list_id}                   — One list with its movies
  POST   /lists                             — Create a list
  PUT    /lists/{list_id}                   — Edit a list (creator or admin)
  DELETE /lists/{list_id}                   — Delete a list (creator or admin)
  POST   /lists/{list_id}/movies            — Add a movie (creator)
  DELETE /lists/{list_id}/movies/{movie_id} — Remove a movie (creator)
  POST   /lists/{list_id}/like              — Toggle like
  POST   /lists/{list_id}/follow            — Toggle follow

Private lists answer 404 to everyone but their creator and admins.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from cineverse.db.models import ListCategoryEnum, RoleEnum, User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user, get_optional_user
from cineverse.schemas.common import MessageResponse
from cineverse.schemas.lists import (
    AddMovieRequest,
    CreateListRequest,
    ListCollectionResponse,
    ListDetailResponse,
    ListEnvelope,
    ListFollowResponse,
    ListLikeResponse,
    ListPageResponse,
    UpdateListRequest,
)
from cineverse.services.list_service import (
    DuplicateListEntryError,
    ListEntryNotFoundError,
    ListNotFoundError,
    NotListOwnerError,
    add_movie,
    create_list,
    delete_list,
    get_list,
    get_popular_lists,
    get_user_lists,
    list_public_lists,
    remove_movie,
    toggle_list_follow,
    toggle_list_like,
    update_list,
)

router = APIRouter()


def _list_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotListOwnerError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, DuplicateListEntryError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


_LIST_ERRORS = (ListNotFoundError, NotListOwnerError, DuplicateListEntryError, ListEntryNotFoundError)


@router.get("", response_model=ListPageResponse)
def public_lists(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: ListCategoryEnum | None = Query(None),
    db: Session = Depends(get_db),
) -> dict:
    return list_public_lists(db, page=page, limit=limit, category=category)


@router.get("/popular", response_model=ListCollectionResponse)
def popular_lists(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
) -> dict:
    return {"lists": get_popular_lists(db, limit=limit)}


@router.get("/user/{user_id}", response_model=ListCollectionResponse)
def user_lists(
    user_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    include_private = viewer is not None and (viewer.id == user_id or viewer.role == RoleEnum.ADMIN)
    return {"lists": get_user_lists(db, user_id, include_private=include_private)}


@router.get("/{list_id}", response_model=ListDetailResponse)
def read_list(
    list_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        data = get_list(db, list_id, viewer)
    except ListNotFoundError as exc:
        raise _list_error(exc) from exc
    return {
        "list": data,
        "is_owner": data["is_owner"],
        "has_liked": data["has_liked"],
        "is_following": data["is_following"],
    }


@router.post("", response_model=ListEnvelope, status_code=status.HTTP_201_CREATED)
def create_list_endpoint(
    payload: CreateListRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    movie_list = create_list(
        db,
        current_user,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        is_public=payload.is_public,
        tags=payload.tags,
        cover_image=payload.cover_image,
    )
    return {"message": "List created successfully!", "list": movie_list}


@router.put("/{list_id}", response_model=ListEnvelope)
def update_list_endpoint(
    list_id: UUID,
    payload: UpdateListRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        movie_list = update_list(db, list_id, current_user, payload.model_dump(exclude_unset=True))
    except _LIST_ERRORS as exc:
        raise _list_error(exc) from exc
    return {"message": "List updated successfully.", "list": movie_list}


@router.delete("/{list_id}", response_model=MessageResponse)
def delete_list_endpoint(
    list_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        delete_list(db, list_id, current_user)
    except _LIST_ERRORS as exc:
        raise _list_error(exc) from exc
    return {"message": "List deleted successfully."}


@router.post("/{list_id}/movies", response_model=ListEnvelope)
def add_movie_endpoint(
    list_id: UUID,
    payload: AddMovieRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        movie_list = add_movie(
            db,
            list_id,
            current_user,
            movie_id=payload.movie_id,
            movie_title=payload.movie_title,
            movie_poster=payload.movie_poster,
            movie_year=payload.movie_year,
            note=payload.note,
            rank=payload.rank,
        )
    except _LIST_ERRORS as exc:
        raise _list_error(exc) from exc
    return {"message": "Movie added to list.", "list": movie_list}


@router.delete("/{list_id}/movies/{movie_id}", response_model=ListEnvelope)
def remove_movie_endpoint(
    list_id: UUID,
    movie_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        movie_list = remove_movie(db, list_id, current_user, movie_id)
    except _LIST_ERRORS as exc:
        raise _list_error(exc) from exc
    return {"message": "Movie removed from list.", "list": movie_list}


@router.post("/{list_id}/like", response_model=ListLikeResponse)
def toggle_like_endpoint(
    list_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_list_like(db, list_id, current_user)
    except ListNotFoundError as exc:
        raise _list_error(exc) from exc


@router.post("/{list_id}/follow", response_model=ListFollowResponse)
def toggle_follow_endpoint(
    list_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_list_follow(db, list_id, current_user)
    except ListNotFoundError as exc:
        raise _list_error(exc) from exc
