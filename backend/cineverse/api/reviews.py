"""
Reviews API — /reviews
──────────────────────
Movie reviews: create, read, edit, like, comment, moderate.

Endpoints:
  GET    /reviews                               — Recent published reviews (?featured)
  GET    /reviews/movie/{movie_id}              — Reviews + rating stats for a movie
  GET    /reviews/{review_id}                   — One review with comments
  POST   /reviews                               — Create a review (one per movie)
  PUT    /reviews/{review_id}                   — Edit own review
  DELETE /reviews/{review_id}                   — Delete own review (or admin)
  POST   /reviews/{review_id}/like              — Toggle like on a review
  POST   /reviews/{review_id}/comment           — Add a comment
  DELETE /reviews/{review_id}/comment/{id}      — Delete own comment (or admin)
  PATCH  /reviews/{review_id}/flags             — Feature / unpublish (admin)
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from cineverse.db.models import User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user, get_optional_user, require_admin
from cineverse.schemas.common import MessageResponse
from cineverse.schemas.reviews import (
    CommentRequest,
    CommentsResponse,
    CreateReviewRequest,
    LikeToggleResponse,
    MovieReviewsResponse,
    ReviewEnvelope,
    ReviewFlagsRequest,
    ReviewListResponse,
    UpdateReviewRequest,
)
from cineverse.services.review_service import (
    CommentNotFoundError,
    DuplicateReviewError,
    InvalidCommentError,
    NotReviewOwnerError,
    ReviewNotFoundError,
    add_comment,
    create_review,
    delete_comment,
    delete_review,
    get_movie_reviews,
    get_movie_stats,
    get_review,
    list_recent_reviews,
    set_review_flags,
    toggle_review_like,
    update_review,
)

router = APIRouter()


def _viewer_id(user: User | None) -> UUID | None:
    return user.id if user is not None else None


@router.get("", response_model=ReviewListResponse)
def recent_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    featured: bool = Query(False),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    return list_recent_reviews(
        db,
        page=page,
        limit=limit,
        featured_only=featured,
        viewer_id=_viewer_id(viewer),
    )


@router.get("/movie/{movie_id}", response_model=MovieReviewsResponse)
def movie_reviews(
    movie_id: int = Path(..., gt=0),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    result = get_movie_reviews(db, movie_id, page=page, limit=limit, viewer_id=_viewer_id(viewer))
    return {**result, "stats": get_movie_stats(db, movie_id)}


@router.get("/{review_id}", response_model=ReviewEnvelope)
def read_review(
    review_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return {"review": get_review(db, review_id, viewer_id=_viewer_id(viewer))}
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("", response_model=ReviewEnvelope, status_code=status.HTTP_201_CREATED)
def create_review_endpoint(
    payload: CreateReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        review = create_review(
            db,
            current_user,
            movie_id=payload.movie_id,
            movie_title=payload.movie_title,
            movie_poster=payload.movie_poster,
            movie_year=payload.movie_year,
            title=payload.title,
            content=payload.content,
            rating=payload.rating,
            contains_spoilers=payload.contains_spoilers,
            tags=payload.tags,
        )
    except DuplicateReviewError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return {"message": "Review created successfully!", "review": review}


@router.put("/{review_id}", response_model=ReviewEnvelope)
def update_review_endpoint(
    review_id: UUID,
    payload: UpdateReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        review = update_review(db, review_id, current_user, payload.model_dump(exclude_unset=True))
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NotReviewOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"message": "Review updated successfully.", "review": review}


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review_endpoint(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        delete_review(db, review_id, current_user)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NotReviewOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"message": "Review deleted successfully."}


@router.post("/{review_id}/like", response_model=LikeToggleResponse)
def toggle_like(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_review_like(db, review_id, current_user)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/{review_id}/comment", response_model=CommentsResponse)
def add_comment_endpoint(
    review_id: UUID,
    payload: CommentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        comments = add_comment(db, review_id, current_user, payload.content)
    except InvalidCommentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"message": "Comment added successfully.", "comments": comments}


@router.delete("/{review_id}/comment/{comment_id}", response_model=MessageResponse)
def delete_comment_endpoint(
    review_id: UUID,
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        delete_comment(db, review_id, comment_id, current_user)
    except (ReviewNotFoundError, CommentNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NotReviewOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"message": "Comment deleted successfully."}


@router.patch("/{review_id}/flags", response_model=ReviewEnvelope)
def moderate_review(
    review_id: UUID,
    payload: ReviewFlagsRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    try:
        review = set_review_flags(
            db,
            review_id,
            is_featured=payload.is_featured,
            is_published=payload.is_published,
        )
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"message": "Review updated successfully.", "review": review}
