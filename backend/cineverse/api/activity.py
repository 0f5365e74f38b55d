"""
Activity API — /activity
────────────────────────
Endpoints:
  GET    /activity/feed      — Public activity from people you follow
  DELETE /activity/expired   — Purge activities past the retention window (admin)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cineverse.db.models import User
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user, require_admin
from cineverse.schemas.activity import FeedResponse, PurgeResponse
from cineverse.services.activity_service import get_feed, purge_expired_activities
from cineverse.services.user_service import following_ids

router = APIRouter()


@router.get("/feed", response_model=FeedResponse)
def feed(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return get_feed(db, following_ids(db, current_user.id), page=page, page_size=limit)


@router.delete("/expired", response_model=PurgeResponse)
def purge_expired(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return {"deleted": purge_expired_activities(db)}
