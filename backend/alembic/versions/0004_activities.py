"""Activity log.

Revision ID: 0004
Revises: 0003
Create Date: 2026-09-28 16:45:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "0004"
down_revision: Union[str, None] = "0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVITY_TYPES = (
    "review_created",
    "review_liked",
    "movie_favorited",
    "movie_watchlisted",
    "list_created",
    "list_updated",
    "user_followed",
    "comment_added",
)


def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_type", sa.Enum(*ACTIVITY_TYPES, name="activity_type"), nullable=False),
        sa.Column("target_type", sa.Enum("review", "list", "user", "movie", name="activity_target"), nullable=False),
        # Not a foreign key: points at reviews, movie_lists or users
        sa.Column("target_id", UUID(as_uuid=True), nullable=True),
        sa.Column("movie_id", sa.Integer(), nullable=True),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(target_type = 'movie' AND movie_id IS NOT NULL) OR "
            "(target_type <> 'movie' AND target_id IS NOT NULL)",
            name="chk_activity_target",
        ),
    )
    op.create_index("ix_activities_created_at", "activities", ["created_at"])
    op.create_index("idx_activities_user_created", "activities", ["user_id", sa.text("created_at DESC")])
    op.create_index("idx_activities_public_created", "activities", ["is_public", sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_table("activities")
    op.execute("DROP TYPE IF EXISTS activity_target")
    op.execute("DROP TYPE IF EXISTS activity_type")
