"""
Small serializers shared by every service: user previews and pagination.
"""
import math
from urllib.parse import quote_plus

from cineverse.db.models import User


def _enum_value(value) -> str | None:
    """Normalize DB/model enum values to plain strings."""
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def _avatar_from_username(username: str) -> str:
    return f"https://api.dicebear.com/8.x/thumbs/svg?seed={quote_plus(username)}"


def avatar_url(user: User) -> str:
    if user.avatar:
        return user.avatar
    return _avatar_from_username(user.username)


def user_preview(user: User) -> dict:
    """Public author card embedded in reviews, lists, comments and activities."""
    return {
        "id": user.id,
        "username": user.username,
        "avatar_url": avatar_url(user),
        "role": _enum_value(user.role),
        "critic_badge": bool(user.critic_badge),
    }


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
