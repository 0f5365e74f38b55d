"""
Identity business logic — profiles, privacy projection, follow graph,
watchlist / favorites, user directory and admin deactivation.
"""
from uuid import UUID

import structlog
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cineverse.db.models import (
    ActivityTargetEnum,
    ActivityTypeEnum,
    Follow,
    RoleEnum,
    SavedCollectionEnum,
    SavedMovie,
    User,
)
from cineverse.services import list_service, review_service
from cineverse.services.activity_service import get_user_activities, record_activity
from cineverse.services.previews import _enum_value, avatar_url, pagination, user_preview

logger = structlog.get_logger(__name__)

EDITABLE_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "bio",
    "avatar",
    "location",
    "website",
    "phone",
    "date_of_birth",
    "specialization",
)

PRIVACY_FLAGS = (
    "show_email",
    "show_phone",
    "show_date_of_birth",
    "show_watchlist",
    "show_favorites",
)

_SAVED_ACTIVITY = {
    SavedCollectionEnum.WATCHLIST: ActivityTypeEnum.MOVIE_WATCHLISTED,
    SavedCollectionEnum.FAVORITE: ActivityTypeEnum.MOVIE_FAVORITED,
}


class UserNotFoundError(Exception):
    """Raised when the target user does not exist or is deactivated."""


class SelfFollowError(Exception):
    """Raised when a user tries to follow themselves."""


class ProfileUpdateError(Exception):
    """Raised when a profile update touches a read-only field."""


def _active_user_or_raise(db: Session, user_id: UUID) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id, User.is_active.is_(True))
        .first()
    )
    if user is None:
        raise UserNotFoundError("User not found.")
    return user


def _user_or_raise(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFoundError("User not found.")
    return user


# ── Follow graph ──────────────────────────────────────────────────────────────

def followers_count(db: Session, user_id: UUID) -> int:
    return db.query(func.count(Follow.id)).filter(Follow.following_id == user_id).scalar() or 0


def following_count(db: Session, user_id: UUID) -> int:
    return db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar() or 0


def is_following(db: Session, follower_id: UUID, following_id: UUID) -> bool:
    return (
        db.query(Follow.id)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
        is not None
    )


def following_ids(db: Session, user_id: UUID) -> list[UUID]:
    return [
        row.following_id
        for row in db.query(Follow.following_id).filter(Follow.follower_id == user_id).all()
    ]


def toggle_follow(db: Session, actor_id: UUID, target_id: UUID) -> dict:
    """
    Follow *target_id*, or unfollow when the edge already exists.

    The edge is a single row, so the actor's `following` and the target's
    `followers` change together in one commit.
    """
    if actor_id == target_id:
        raise SelfFollowError("You cannot follow yourself.")

    target = _active_user_or_raise(db, target_id)

    existing = (
        db.query(Follow)
        .filter(Follow.follower_id == actor_id, Follow.following_id == target_id)
        .first()
    )

    if existing is not None:
        db.delete(existing)
        db.commit()
        now_following = False
    else:
        db.add(Follow(follower_id=actor_id, following_id=target_id))
        try:
            db.commit()
            now_following = True
        except IntegrityError:
            # A concurrent request created the same edge first
            db.rollback()
            now_following = True
        else:
            record_activity(
                db,
                actor_id,
                ActivityTypeEnum.USER_FOLLOWED,
                ActivityTargetEnum.USER,
                target_id=target_id,
                details={"target_username": target.username},
            )

    logger.info(
        "follow_toggled",
        follower_id=str(actor_id),
        following_id=str(target_id),
        is_following=now_following,
    )
    return {
        "is_following": now_following,
        "followers_count": followers_count(db, target_id),
        "message": "Following successfully." if now_following else "Unfollowed successfully.",
    }


def _follow_rows(db: Session, user_id: UUID, direction: str) -> list[dict]:
    if direction == "followers":
        join_on = Follow.follower_id == User.id
        match = Follow.following_id == user_id
    else:
        join_on = Follow.following_id == User.id
        match = Follow.follower_id == user_id

    rows = (
        db.query(Follow, User)
        .join(User, join_on)
        .filter(match)
        .order_by(User.username.asc())
        .all()
    )
    return [
        {
            **user_preview(other),
            "first_name": other.first_name,
            "last_name": other.last_name,
            "followed_at": follow.created_at,
        }
        for follow, other in rows
    ]


def list_followers(db: Session, user_id: UUID) -> list[dict]:
    """Return users who follow this user."""
    _user_or_raise(db, user_id)
    return _follow_rows(db, user_id, "followers")


def list_following(db: Session, user_id: UUID) -> list[dict]:
    """Return users this user follows."""
    _user_or_raise(db, user_id)
    return _follow_rows(db, user_id, "following")


# ── Watchlist / favorites ─────────────────────────────────────────────────────

def _saved_entries(user: User, collection: SavedCollectionEnum) -> list[dict]:
    return [
        {"movie_id": entry.movie_id, "added_at": entry.added_at}
        for entry in user.saved_movies
        if entry.collection == collection
    ]


def is_saved(db: Session, user_id: UUID, collection: SavedCollectionEnum, movie_id: int) -> bool:
    return (
        db.query(SavedMovie.id)
        .filter(
            SavedMovie.user_id == user_id,
            SavedMovie.collection == collection,
            SavedMovie.movie_id == movie_id,
        )
        .first()
        is not None
    )


def toggle_saved_movie(
    db: Session,
    user_id: UUID,
    collection: SavedCollectionEnum,
    movie_id: int,
    movie_title: str | None = None,
    movie_poster: str | None = None,
) -> bool:
    """Add the movie to the collection, or remove it if present. Returns the new membership."""
    existing = (
        db.query(SavedMovie)
        .filter(
            SavedMovie.user_id == user_id,
            SavedMovie.collection == collection,
            SavedMovie.movie_id == movie_id,
        )
        .first()
    )
    if existing is not None:
        db.delete(existing)
        db.commit()
        return False

    db.add(SavedMovie(user_id=user_id, collection=collection, movie_id=movie_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return True

    record_activity(
        db,
        user_id,
        _SAVED_ACTIVITY[collection],
        ActivityTargetEnum.MOVIE,
        movie_id=movie_id,
        details={"movie_title": movie_title, "movie_poster": movie_poster},
    )
    return True


# ── Profiles ──────────────────────────────────────────────────────────────────

def privacy_settings(user: User) -> dict:
    return {flag: bool(getattr(user, flag)) for flag in PRIVACY_FLAGS}


def project_profile(db: Session, user: User, viewer: User | None) -> dict:
    """
    Profile as seen by *viewer*.

    email / phone / date_of_birth / watchlist / favorites are filled only for
    the owner or when the matching show_* flag is on; otherwise they are None.
    """
    is_owner = viewer is not None and viewer.id == user.id
    watchlist = _saved_entries(user, SavedCollectionEnum.WATCHLIST)
    favorites = _saved_entries(user, SavedCollectionEnum.FAVORITE)

    profile = {
        "id": user.id,
        "username": user.username,
        "role": _enum_value(user.role),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "bio": user.bio,
        "avatar_url": avatar_url(user),
        "location": user.location,
        "website": user.website,
        "critic_badge": bool(user.critic_badge),
        "specialization": list(user.specialization or []),
        "followers_count": followers_count(db, user.id),
        "following_count": following_count(db, user.id),
        "created_at": user.created_at,
        "email": user.email if is_owner or user.show_email else None,
        "phone": user.phone if is_owner or user.show_phone else None,
        "date_of_birth": user.date_of_birth if is_owner or user.show_date_of_birth else None,
        "watchlist": watchlist if is_owner or user.show_watchlist else None,
        "favorites": favorites if is_owner or user.show_favorites else None,
        "watchlist_count": len(watchlist) if is_owner or user.show_watchlist else None,
        "favorites_count": len(favorites) if is_owner or user.show_favorites else None,
    }
    if is_owner:
        profile.update({
            "critic_since": user.critic_since,
            "privacy_settings": privacy_settings(user),
            "last_login": user.last_login,
            "updated_at": user.updated_at,
        })
    return profile


def get_profile_page(db: Session, target_id: UUID, viewer: User | None) -> dict:
    """Profile plus recent reviews, lists and activity for the profile page."""
    target = _active_user_or_raise(db, target_id)
    is_own = viewer is not None and viewer.id == target.id

    reviews = review_service.get_user_reviews(db, target.id, page=1, limit=5)["reviews"]
    lists = list_service.get_user_lists(db, target.id, include_private=is_own)[:5]

    return {
        "profile": project_profile(db, target, viewer),
        "reviews": reviews,
        "lists": lists,
        "activities": get_user_activities(db, target.id, limit=10),
        "is_own_profile": is_own,
        "is_following": bool(viewer) and not is_own and is_following(db, viewer.id, target.id),
    }


def update_profile(db: Session, user: User, updates: dict) -> dict:
    """Apply an allow-listed partial update and return the owner's profile."""
    if updates.get("username"):
        raise ProfileUpdateError("Username cannot be changed.")

    for field in EDITABLE_PROFILE_FIELDS:
        if field not in updates:
            continue
        value = updates[field]
        if isinstance(value, str):
            value = value.strip()
        if field == "specialization":
            value = [s.strip() for s in (value or []) if s and s.strip()]
        if value is None and field != "date_of_birth":
            continue
        setattr(user, field, value)

    for flag, value in (updates.get("privacy_settings") or {}).items():
        if flag in PRIVACY_FLAGS and value is not None:
            setattr(user, flag, bool(value))

    db.add(user)
    db.commit()
    db.refresh(user)
    return project_profile(db, user, user)


# ── Directory ─────────────────────────────────────────────────────────────────

def _directory_entry(user: User) -> dict:
    return {
        **user_preview(user),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "bio": user.bio,
        "specialization": list(user.specialization or []),
        "created_at": user.created_at,
    }


def search_users(
    db: Session,
    search: str | None = None,
    role: RoleEnum | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Active users matching *search* on username or name, newest first."""
    query = db.query(User).filter(User.is_active.is_(True))

    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                User.username.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
    if role is not None:
        query = query.filter(User.role == role)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "users": [_directory_entry(u) for u in users],
        "pagination": pagination(page, limit, total),
    }


def list_critics(db: Session, limit: int = 10) -> list[dict]:
    """Badge-holding critics, most followed first."""
    follower_total = func.count(Follow.id)
    rows = (
        db.query(User, follower_total.label("followers"))
        .outerjoin(Follow, Follow.following_id == User.id)
        .filter(
            User.role == RoleEnum.CRITIC,
            User.critic_badge.is_(True),
            User.is_active.is_(True),
        )
        .group_by(User.id)
        .order_by(follower_total.desc(), User.created_at.desc())
        .limit(limit)
        .all()
    )
    return [{**_directory_entry(user), "followers_count": int(count)} for user, count in rows]


def list_recent_users(db: Session, limit: int = 10) -> list[dict]:
    users = (
        db.query(User)
        .filter(User.is_active.is_(True))
        .order_by(User.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_directory_entry(u) for u in users]


def deactivate_user(db: Session, user_id: UUID) -> None:
    """Admin: soft-delete an account. Its token stops working immediately."""
    user = _user_or_raise(db, user_id)
    user.is_active = False
    db.add(user)
    db.commit()
    logger.info("user_deactivated", user_id=str(user_id))
