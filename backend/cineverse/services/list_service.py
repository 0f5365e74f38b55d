"""
Movie list business logic — curated lists, their entries, likes and followers.
"""
from uuid import UUID

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cineverse.db.models import (
    ActivityTargetEnum,
    ActivityTypeEnum,
    ListCategoryEnum,
    ListFollow,
    ListLike,
    MovieList,
    MovieListEntry,
    RoleEnum,
    User,
)
from cineverse.services.activity_service import record_activity, set_target_visibility
from cineverse.services.previews import _enum_value, pagination, user_preview

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("title", "description", "category", "is_public", "tags", "cover_image")


class ListNotFoundError(Exception):
    """Raised when a list does not exist or is private to someone else."""


class NotListOwnerError(Exception):
    """Raised when a user tries to modify another user's list."""


class DuplicateListEntryError(Exception):
    """Raised when the movie is already in the list."""


class ListEntryNotFoundError(Exception):
    """Raised when removing a movie that is not in the list."""


def _is_admin(user: User | None) -> bool:
    return user is not None and user.role == RoleEnum.ADMIN


def _can_view(movie_list: MovieList, viewer: User | None) -> bool:
    if movie_list.is_public:
        return True
    return viewer is not None and (viewer.id == movie_list.creator_id or _is_admin(viewer))


def _list_or_raise(db: Session, list_id: UUID) -> MovieList:
    movie_list = db.query(MovieList).filter(MovieList.id == list_id).first()
    if movie_list is None:
        raise ListNotFoundError("List not found.")
    return movie_list


def _visible_list_or_raise(db: Session, list_id: UUID, viewer: User | None) -> MovieList:
    movie_list = _list_or_raise(db, list_id)
    # Private lists are reported as missing, not forbidden
    if not _can_view(movie_list, viewer):
        raise ListNotFoundError("List not found.")
    return movie_list


def _owned_list_or_raise(
    db: Session,
    list_id: UUID,
    actor: User,
    allow_admin: bool = False,
) -> MovieList:
    movie_list = _visible_list_or_raise(db, list_id, actor)
    if movie_list.creator_id != actor.id and not (allow_admin and _is_admin(actor)):
        raise NotListOwnerError("You can only modify your own lists.")
    return movie_list


def _clean_tags(tags) -> list[str]:
    return [t.strip() for t in (tags or []) if t and t.strip()]


def _serialize_entry(entry: MovieListEntry) -> dict:
    return {
        "movie_id": entry.movie_id,
        "movie_title": entry.movie_title,
        "movie_poster": entry.movie_poster,
        "movie_year": entry.movie_year,
        "note": entry.note,
        "rank": entry.rank,
        "added_at": entry.added_at,
    }


def _build_list_dict(movie_list: MovieList, include_entries: bool = True) -> dict:
    data = {
        "id": movie_list.id,
        "creator": user_preview(movie_list.creator),
        "title": movie_list.title,
        "description": movie_list.description,
        "category": _enum_value(movie_list.category),
        "is_public": movie_list.is_public,
        "tags": list(movie_list.tags or []),
        "cover_image": movie_list.cover_image,
        "movie_count": movie_list.movie_count,
        "likes_count": movie_list.likes_count,
        "followers_count": movie_list.followers_count,
        "created_at": movie_list.created_at,
        "updated_at": movie_list.updated_at,
    }
    if include_entries:
        data["movies"] = [_serialize_entry(e) for e in movie_list.entries]
    return data


# ── Lists ─────────────────────────────────────────────────────────────────────

def create_list(
    db: Session,
    creator: User,
    title: str,
    description: str = "",
    category: ListCategoryEnum = ListCategoryEnum.CUSTOM,
    is_public: bool = True,
    tags: list[str] | None = None,
    cover_image: str = "",
) -> dict:
    movie_list = MovieList(
        creator_id=creator.id,
        title=title.strip(),
        description=(description or "").strip(),
        category=category,
        is_public=is_public,
        tags=_clean_tags(tags),
        cover_image=cover_image or "",
    )
    db.add(movie_list)
    db.commit()
    db.refresh(movie_list)

    logger.info("list_created", list_id=str(movie_list.id), creator_id=str(creator.id))
    record_activity(
        db,
        creator.id,
        ActivityTypeEnum.LIST_CREATED,
        ActivityTargetEnum.LIST,
        target_id=movie_list.id,
        details={"list_title": movie_list.title},
        is_public=movie_list.is_public,
    )
    return _build_list_dict(movie_list)


def update_list(db: Session, list_id: UUID, actor: User, fields: dict) -> dict:
    """
    Apply allow-listed changes. Creator or admin.

    Changing is_public also re-scopes every earlier activity about the list.
    """
    movie_list = _owned_list_or_raise(db, list_id, actor, allow_admin=True)
    was_public = movie_list.is_public

    for field in UPDATABLE_FIELDS:
        if field not in fields or fields[field] is None:
            continue
        value = fields[field]
        if field == "tags":
            value = _clean_tags(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(movie_list, field, value)

    db.add(movie_list)
    if movie_list.is_public != was_public:
        set_target_visibility(db, ActivityTargetEnum.LIST, movie_list.id, movie_list.is_public)
    db.commit()
    db.refresh(movie_list)

    record_activity(
        db,
        actor.id,
        ActivityTypeEnum.LIST_UPDATED,
        ActivityTargetEnum.LIST,
        target_id=movie_list.id,
        details={"list_title": movie_list.title},
        is_public=movie_list.is_public,
    )
    return _build_list_dict(movie_list)


def delete_list(db: Session, list_id: UUID, actor: User) -> None:
    """Delete a list. Creator or admin."""
    movie_list = _owned_list_or_raise(db, list_id, actor, allow_admin=True)

    db.delete(movie_list)
    db.commit()
    logger.info("list_deleted", list_id=str(list_id), actor_id=str(actor.id))


def get_list(db: Session, list_id: UUID, viewer: User | None = None) -> dict:
    """
    A list with its entries, as seen by *viewer*.

    Private lists raise ListNotFoundError for anyone but the creator or an admin.
    """
    movie_list = _visible_list_or_raise(db, list_id, viewer)

    viewer_id = viewer.id if viewer is not None else None
    data = _build_list_dict(movie_list)
    data.update({
        "is_owner": viewer_id is not None and viewer_id == movie_list.creator_id,
        "has_liked": viewer_id is not None and any(l.user_id == viewer_id for l in movie_list.likes),
        "is_following": viewer_id is not None and any(f.user_id == viewer_id for f in movie_list.followers),
    })
    return data


def list_public_lists(
    db: Session,
    page: int = 1,
    limit: int = 12,
    category: ListCategoryEnum | None = None,
) -> dict:
    query = db.query(MovieList).filter(MovieList.is_public.is_(True))
    if category is not None:
        query = query.filter(MovieList.category == category)

    total = query.count()
    lists = (
        query.order_by(MovieList.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "lists": [_build_list_dict(l, include_entries=False) for l in lists],
        "pagination": pagination(page, limit, total),
    }


def get_user_lists(db: Session, user_id: UUID, include_private: bool = False) -> list[dict]:
    """A user's lists, newest first. Private ones only when *include_private*."""
    query = db.query(MovieList).filter(MovieList.creator_id == user_id)
    if not include_private:
        query = query.filter(MovieList.is_public.is_(True))
    lists = query.order_by(MovieList.created_at.desc()).all()
    return [_build_list_dict(l, include_entries=False) for l in lists]


def get_popular_lists(db: Session, limit: int = 6) -> list[dict]:
    """Public lists by like count, newest first among ties."""
    like_counts = (
        db.query(ListLike.list_id, func.count(ListLike.user_id).label("like_count"))
        .group_by(ListLike.list_id)
        .subquery()
    )
    like_count = func.coalesce(like_counts.c.like_count, 0)

    lists = (
        db.query(MovieList)
        .outerjoin(like_counts, like_counts.c.list_id == MovieList.id)
        .filter(MovieList.is_public.is_(True))
        .order_by(like_count.desc(), MovieList.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_build_list_dict(l, include_entries=False) for l in lists]


# ── Entries ───────────────────────────────────────────────────────────────────

def add_movie(
    db: Session,
    list_id: UUID,
    actor: User,
    movie_id: int,
    movie_title: str,
    movie_poster: str | None = None,
    movie_year: int | None = None,
    note: str = "",
    rank: int | None = None,
) -> dict:
    """
    Append a movie to the list. Creator only.

    rank defaults to the append position (current entry count + 1).
    """
    movie_list = _owned_list_or_raise(db, list_id, actor)

    if any(entry.movie_id == movie_id for entry in movie_list.entries):
        raise DuplicateListEntryError("Movie already in list.")

    entry = MovieListEntry(
        list_id=movie_list.id,
        movie_id=movie_id,
        movie_title=movie_title.strip(),
        movie_poster=movie_poster or "",
        movie_year=movie_year,
        note=(note or "").strip(),
        rank=rank if rank is not None else len(movie_list.entries) + 1,
    )
    db.add(entry)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateListEntryError("Movie already in list.") from exc

    db.refresh(movie_list)
    return _build_list_dict(movie_list)


def remove_movie(db: Session, list_id: UUID, actor: User, movie_id: int) -> dict:
    """Remove a movie from the list. Creator only."""
    movie_list = _owned_list_or_raise(db, list_id, actor)

    entry = (
        db.query(MovieListEntry)
        .filter(MovieListEntry.list_id == movie_list.id, MovieListEntry.movie_id == movie_id)
        .first()
    )
    if entry is None:
        raise ListEntryNotFoundError("Movie not in list.")

    db.delete(entry)
    db.commit()
    db.refresh(movie_list)
    return _build_list_dict(movie_list)


# ── Engagement ────────────────────────────────────────────────────────────────

def _toggle_edge(db: Session, model, list_id: UUID, user_id: UUID) -> bool:
    existing = (
        db.query(model)
        .filter(model.list_id == list_id, model.user_id == user_id)
        .first()
    )
    if existing is not None:
        db.delete(existing)
        db.commit()
        return False

    db.add(model(list_id=list_id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
    return True


def toggle_list_like(db: Session, list_id: UUID, user: User) -> dict:
    movie_list = _visible_list_or_raise(db, list_id, user)
    has_liked = _toggle_edge(db, ListLike, movie_list.id, user.id)
    likes_count = (
        db.query(func.count(ListLike.user_id)).filter(ListLike.list_id == movie_list.id).scalar()
    )
    return {"has_liked": has_liked, "likes_count": likes_count or 0}


def toggle_list_follow(db: Session, list_id: UUID, user: User) -> dict:
    movie_list = _visible_list_or_raise(db, list_id, user)
    is_following = _toggle_edge(db, ListFollow, movie_list.id, user.id)
    followers_count = (
        db.query(func.count(ListFollow.user_id)).filter(ListFollow.list_id == movie_list.id).scalar()
    )
    return {"is_following": is_following, "followers_count": followers_count or 0}
