"""
Activity log — append-only feed events with a fixed retention window.

Writes are best-effort: record_activity() never raises, so a failed insert
can not fail the review/follow/list action that triggered it. Callers commit
their own work before recording.

Reads never return rows older than the retention window, whether or not the
purge task has deleted them yet.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session

from cineverse.core.config import settings
from cineverse.db.models import (
    Activity,
    ActivityTargetEnum,
    ActivityTypeEnum,
    User,
)
from cineverse.db.session import SessionLocal
from cineverse.services.previews import _enum_value, pagination, user_preview

logger = structlog.get_logger(__name__)


def retention_cutoff(now: datetime | None = None) -> datetime:
    """Oldest created_at a readable activity may have."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=settings.ACTIVITY_RETENTION_DAYS)


def serialize_activity(activity: Activity, actor: User) -> dict:
    target_type = _enum_value(activity.target_type)
    target_id = activity.movie_id if target_type == ActivityTargetEnum.MOVIE.value else activity.target_id
    return {
        "id": activity.id,
        "user": user_preview(actor),
        "type": _enum_value(activity.activity_type),
        "target": {"type": target_type, "id": target_id},
        "movie_id": activity.movie_id,
        "metadata": dict(activity.details or {}),
        "is_public": activity.is_public,
        "created_at": activity.created_at,
    }


def record_activity(
    db: Session,
    user_id: UUID,
    activity_type: ActivityTypeEnum,
    target_type: ActivityTargetEnum,
    target_id: UUID | None = None,
    movie_id: int | None = None,
    details: dict | None = None,
    is_public: bool = True,
) -> Activity | None:
    """
    Append an activity row and commit it.

    Returns the stored Activity, or None when the write failed. Failures are
    logged and rolled back, never raised.
    """
    try:
        activity = Activity(
            user_id=user_id,
            activity_type=activity_type,
            target_type=target_type,
            target_id=target_id,
            movie_id=movie_id,
            details={k: v for k, v in (details or {}).items() if v is not None},
            is_public=is_public,
        )
        db.add(activity)
        db.commit()
        return activity
    except Exception:
        logger.warning(
            "activity_record_failed",
            user_id=str(user_id),
            activity_type=_enum_value(activity_type),
            exc_info=True,
        )
        try:
            db.rollback()
        except Exception:
            logger.warning("activity_rollback_failed", exc_info=True)
        return None


def set_target_visibility(
    db: Session,
    target_type: ActivityTargetEnum,
    target_id: UUID,
    is_public: bool,
) -> int:
    """
    Re-scope every activity about one target, e.g. when a list goes private.

    Runs inside the caller's transaction; the caller commits.
    """
    return (
        db.query(Activity)
        .filter(Activity.target_type == target_type, Activity.target_id == target_id)
        .update({Activity.is_public: is_public}, synchronize_session=False)
    )


def get_feed(
    db: Session,
    following_ids: list[UUID],
    page: int = 1,
    page_size: int = 20,
    now: datetime | None = None,
) -> dict:
    """Public activities by anyone in *following_ids*, newest first."""
    if not following_ids:
        return {"activities": [], "pagination": pagination(page, page_size, 0)}

    base = db.query(Activity).filter(
        Activity.user_id.in_(following_ids),
        Activity.is_public.is_(True),
        Activity.created_at >= retention_cutoff(now),
    )
    total = base.with_entities(func.count(Activity.id)).scalar() or 0

    rows = (
        base.join(User, Activity.user_id == User.id)
        .add_entity(User)
        .order_by(Activity.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {
        "activities": [serialize_activity(activity, actor) for activity, actor in rows],
        "pagination": pagination(page, page_size, total),
    }


def get_user_activities(
    db: Session,
    user_id: UUID,
    limit: int = 10,
    now: datetime | None = None,
) -> list[dict]:
    """A single user's latest public activities (profile page)."""
    rows = (
        db.query(Activity, User)
        .join(User, Activity.user_id == User.id)
        .filter(
            Activity.user_id == user_id,
            Activity.is_public.is_(True),
            Activity.created_at >= retention_cutoff(now),
        )
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )
    return [serialize_activity(activity, actor) for activity, actor in rows]


def purge_expired_activities(db: Session, now: datetime | None = None) -> int:
    """Delete every activity older than the retention window. Returns the count."""
    cutoff = retention_cutoff(now)
    deleted = (
        db.query(Activity)
        .filter(Activity.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("activities_purged", count=deleted, cutoff=cutoff.isoformat())
    return deleted


def _purge_once() -> int:
    db = SessionLocal()
    try:
        return purge_expired_activities(db)
    finally:
        db.close()


async def run_purge_loop(interval_seconds: int) -> None:
    """Purge expired activities forever, every *interval_seconds*."""
    while True:
        try:
            await asyncio.to_thread(_purge_once)
        except Exception:
            logger.warning("activity_purge_failed", exc_info=True)
        await asyncio.sleep(interval_seconds)
