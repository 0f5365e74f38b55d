"""
Movie review business logic.
"""
from uuid import UUID

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cineverse.db.models import (
    ActivityTargetEnum,
    ActivityTypeEnum,
    Review,
    ReviewComment,
    ReviewLike,
    RoleEnum,
    User,
)
from cineverse.services.activity_service import record_activity
from cineverse.services.previews import pagination, user_preview

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("title", "content", "rating", "contains_spoilers", "tags")


class ReviewNotFoundError(Exception):
    """Raised when a review does not exist."""


class NotReviewOwnerError(Exception):
    """Raised when a user tries to modify another user's review."""


class DuplicateReviewError(Exception):
    """Raised when a user already reviewed this movie."""


class CommentNotFoundError(Exception):
    """Raised when a comment does not exist on the given review."""


class InvalidCommentError(Exception):
    """Raised when a comment is empty after trimming."""


def _clean_tags(tags) -> list[str]:
    return [t.strip() for t in (tags or []) if t and t.strip()]


def _critic_score(rating: int) -> int:
    return rating * 10


def _is_owner_or_admin(review: Review, actor: User) -> bool:
    return review.author_id == actor.id or actor.role == RoleEnum.ADMIN


def _review_or_raise(db: Session, review_id: UUID) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise ReviewNotFoundError("Review not found.")
    return review


def _serialize_comment(comment: ReviewComment) -> dict:
    return {
        "id": comment.id,
        "user": user_preview(comment.author),
        "content": comment.content,
        "created_at": comment.created_at,
    }


def _build_review_dict(
    review: Review,
    viewer_id: UUID | None = None,
    include_comments: bool = False,
) -> dict:
    data = {
        "id": review.id,
        "user": user_preview(review.author),
        "movie_id": review.movie_id,
        "movie_title": review.movie_title,
        "movie_poster": review.movie_poster,
        "movie_year": review.movie_year,
        "title": review.title,
        "content": review.content,
        "rating": review.rating,
        "contains_spoilers": review.contains_spoilers,
        "tags": list(review.tags or []),
        "is_published": review.is_published,
        "is_featured": review.is_featured,
        "is_critic_review": review.is_critic_review,
        "critic_score": review.critic_score,
        "likes_count": review.likes_count,
        "comments_count": review.comments_count,
        "is_liked": viewer_id is not None and any(like.user_id == viewer_id for like in review.likes),
        "created_at": review.created_at,
        "updated_at": review.updated_at,
    }
    if include_comments:
        data["comments"] = [_serialize_comment(c) for c in review.comments]
    return data


# ── Writes ────────────────────────────────────────────────────────────────────

def create_review(
    db: Session,
    author: User,
    movie_id: int,
    movie_title: str,
    title: str,
    content: str,
    rating: int,
    movie_poster: str | None = None,
    movie_year: int | None = None,
    contains_spoilers: bool = False,
    tags: list[str] | None = None,
) -> dict:
    """
    Create the author's review of a movie.

    A second review of the same movie raises DuplicateReviewError, whether
    caught by the up-front check or by the unique constraint. Critics get
    is_critic_review and critic_score = rating * 10.
    """
    if has_reviewed(db, author.id, movie_id):
        raise DuplicateReviewError("You have already reviewed this movie.")

    is_critic = author.role == RoleEnum.CRITIC
    review = Review(
        author_id=author.id,
        movie_id=movie_id,
        movie_title=movie_title.strip(),
        movie_poster=movie_poster or "",
        movie_year=movie_year,
        title=title.strip(),
        content=content.strip(),
        rating=rating,
        contains_spoilers=contains_spoilers,
        tags=_clean_tags(tags),
        is_critic_review=is_critic,
        critic_score=_critic_score(rating) if is_critic else None,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Only a racing insert of the same (author, movie) is a duplicate
        if has_reviewed(db, author.id, movie_id):
            raise DuplicateReviewError("You have already reviewed this movie.") from exc
        raise
    db.refresh(review)

    logger.info("review_created", review_id=str(review.id), movie_id=movie_id, author_id=str(author.id))
    record_activity(
        db,
        author.id,
        ActivityTypeEnum.REVIEW_CREATED,
        ActivityTargetEnum.REVIEW,
        target_id=review.id,
        movie_id=movie_id,
        details={
            "movie_title": review.movie_title,
            "movie_poster": review.movie_poster,
            "review_title": review.title,
        },
    )
    return _build_review_dict(review, viewer_id=author.id)


def update_review(db: Session, review_id: UUID, actor: User, fields: dict) -> dict:
    """Update the allow-listed fields. Only the author or an admin may edit."""
    review = _review_or_raise(db, review_id)
    if not _is_owner_or_admin(review, actor):
        raise NotReviewOwnerError("You can only edit your own reviews.")

    rating_changed = False
    for field in UPDATABLE_FIELDS:
        if field not in fields or fields[field] is None:
            continue
        value = fields[field]
        if field == "tags":
            value = _clean_tags(value)
        elif isinstance(value, str):
            value = value.strip()
        if field == "rating" and value != review.rating:
            rating_changed = True
        setattr(review, field, value)

    if rating_changed and review.author.role == RoleEnum.CRITIC:
        review.critic_score = _critic_score(review.rating)

    db.add(review)
    db.commit()
    db.refresh(review)
    return _build_review_dict(review, viewer_id=actor.id)


def delete_review(db: Session, review_id: UUID, actor: User) -> None:
    """Delete a review. Only the author or an admin can delete."""
    review = _review_or_raise(db, review_id)
    if not _is_owner_or_admin(review, actor):
        raise NotReviewOwnerError("You can only delete your own reviews.")

    db.delete(review)
    db.commit()
    logger.info("review_deleted", review_id=str(review_id), actor_id=str(actor.id))


def toggle_review_like(db: Session, review_id: UUID, user: User) -> dict:
    """Like or unlike a review. Returns updated like state."""
    review = _review_or_raise(db, review_id)

    existing = (
        db.query(ReviewLike)
        .filter(ReviewLike.review_id == review_id, ReviewLike.user_id == user.id)
        .first()
    )

    if existing:
        db.delete(existing)
        db.commit()
        is_liked = False
    else:
        db.add(ReviewLike(review_id=review_id, user_id=user.id))
        try:
            db.commit()
            is_liked = True
        except IntegrityError:
            db.rollback()
            is_liked = True
        else:
            record_activity(
                db,
                user.id,
                ActivityTypeEnum.REVIEW_LIKED,
                ActivityTargetEnum.REVIEW,
                target_id=review.id,
                movie_id=review.movie_id,
                details={"movie_title": review.movie_title, "review_title": review.title},
            )

    likes_count = (
        db.query(func.count(ReviewLike.user_id))
        .filter(ReviewLike.review_id == review_id)
        .scalar()
    )
    return {"is_liked": is_liked, "likes_count": likes_count or 0}


def add_comment(db: Session, review_id: UUID, author: User, content: str) -> list[dict]:
    """Append a trimmed, non-empty comment. Returns all comments in order."""
    review = _review_or_raise(db, review_id)

    text = (content or "").strip()
    if not text:
        raise InvalidCommentError("Comment content is required.")

    db.add(ReviewComment(review_id=review.id, author_id=author.id, content=text))
    db.commit()
    db.refresh(review)

    record_activity(
        db,
        author.id,
        ActivityTypeEnum.COMMENT_ADDED,
        ActivityTargetEnum.REVIEW,
        target_id=review.id,
        movie_id=review.movie_id,
        details={"movie_title": review.movie_title, "review_title": review.title},
    )
    return [_serialize_comment(c) for c in review.comments]


def delete_comment(db: Session, review_id: UUID, comment_id: UUID, actor: User) -> None:
    _review_or_raise(db, review_id)
    comment = (
        db.query(ReviewComment)
        .filter(ReviewComment.id == comment_id, ReviewComment.review_id == review_id)
        .first()
    )
    if not comment:
        raise CommentNotFoundError("Comment not found.")
    if comment.author_id != actor.id and actor.role != RoleEnum.ADMIN:
        raise NotReviewOwnerError("You can only delete your own comments.")

    db.delete(comment)
    db.commit()


def set_review_flags(
    db: Session,
    review_id: UUID,
    is_featured: bool | None = None,
    is_published: bool | None = None,
) -> dict:
    """Admin moderation: feature or unpublish a review."""
    review = _review_or_raise(db, review_id)
    if is_featured is not None:
        review.is_featured = is_featured
    if is_published is not None:
        review.is_published = is_published
    db.add(review)
    db.commit()
    db.refresh(review)
    logger.info(
        "review_moderated",
        review_id=str(review_id),
        is_featured=review.is_featured,
        is_published=review.is_published,
    )
    return _build_review_dict(review)


# ── Reads ─────────────────────────────────────────────────────────────────────

def has_reviewed(db: Session, user_id: UUID, movie_id: int) -> bool:
    return (
        db.query(Review.id)
        .filter(Review.author_id == user_id, Review.movie_id == movie_id)
        .first()
        is not None
    )


def get_review(db: Session, review_id: UUID, viewer_id: UUID | None = None) -> dict:
    """A single review with its comments."""
    review = _review_or_raise(db, review_id)
    return _build_review_dict(review, viewer_id=viewer_id, include_comments=True)


def get_movie_stats(db: Session, movie_id: int) -> dict:
    """
    Aggregate rating over a movie's published reviews.

    No reviews gives {average_rating: 0, total_reviews: 0, critic_average: None}.
    critic_average covers critic reviews only and is None when there are none.
    """
    published = (Review.movie_id == movie_id, Review.is_published.is_(True))

    average, total = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(*published)
        .one()
    )
    critic_average = (
        db.query(func.avg(Review.rating))
        .filter(*published, Review.is_critic_review.is_(True))
        .scalar()
    )
    return {
        "average_rating": round(float(average), 1) if total else 0,
        "total_reviews": int(total or 0),
        "critic_average": round(float(critic_average), 1) if critic_average is not None else None,
    }


def get_movie_reviews(
    db: Session,
    movie_id: int,
    page: int = 1,
    limit: int = 10,
    viewer_id: UUID | None = None,
) -> dict:
    """Published reviews of a movie: featured first, then newest first."""
    query = db.query(Review).filter(Review.movie_id == movie_id, Review.is_published.is_(True))
    total = query.count()
    reviews = (
        query.order_by(Review.is_featured.desc(), Review.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "reviews": [_build_review_dict(r, viewer_id=viewer_id) for r in reviews],
        "pagination": pagination(page, limit, total),
    }


def list_recent_reviews(
    db: Session,
    page: int = 1,
    limit: int = 10,
    featured_only: bool = False,
    viewer_id: UUID | None = None,
) -> dict:
    query = db.query(Review).filter(Review.is_published.is_(True))
    if featured_only:
        query = query.filter(Review.is_featured.is_(True))
    total = query.count()
    reviews = (
        query.order_by(Review.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "reviews": [_build_review_dict(r, viewer_id=viewer_id) for r in reviews],
        "pagination": pagination(page, limit, total),
    }


def get_user_reviews(
    db: Session,
    user_id: UUID,
    page: int = 1,
    limit: int = 10,
    viewer_id: UUID | None = None,
) -> dict:
    """Get all published reviews by a specific user."""
    query = db.query(Review).filter(Review.author_id == user_id, Review.is_published.is_(True))
    total = query.count()
    reviews = (
        query.order_by(Review.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "reviews": [_build_review_dict(r, viewer_id=viewer_id) for r in reviews],
        "pagination": pagination(page, limit, total),
    }
