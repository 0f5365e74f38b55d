"""Reviews, review likes and comments.

Revision ID: 0002
Revises: 0001
Create Date: 2026-09-16 14:20:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── reviews ───────────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("author_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("movie_title", sa.String(500), nullable=False),
        sa.Column("movie_poster", sa.String(500), nullable=False, server_default=""),
        sa.Column("movie_year", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("contains_spoilers", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tags", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_critic_review", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("critic_score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("author_id", "movie_id", name="uq_review_author_movie"),
        sa.CheckConstraint("rating BETWEEN 1 AND 10", name="chk_review_rating"),
        sa.CheckConstraint(
            "critic_score IS NULL OR critic_score BETWEEN 0 AND 100",
            name="chk_review_critic_score",
        ),
        sa.CheckConstraint(
            "length(btrim(content)) >= 50 AND length(content) <= 5000",
            name="chk_review_content_len",
        ),
    )
    op.create_index("ix_reviews_author_id", "reviews", ["author_id"])
    op.create_index("idx_reviews_movie_created", "reviews", ["movie_id", "created_at"])

    op.execute("""
        CREATE TRIGGER trg_reviews_updated_at
        BEFORE UPDATE ON reviews
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)

    # ── review_likes ──────────────────────────────────────────────────────
    op.create_table(
        "review_likes",
        sa.Column("review_id", UUID(as_uuid=True), sa.ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # ── review_comments ───────────────────────────────────────────────────
    op.create_table(
        "review_comments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("review_id", UUID(as_uuid=True), sa.ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "length(content) >= 1 AND length(content) <= 1000",
            name="chk_review_comment_len",
        ),
    )
    op.create_index("ix_review_comments_review_id", "review_comments", ["review_id"])


def downgrade() -> None:
    op.drop_table("review_comments")
    op.drop_table("review_likes")
    op.execute("DROP TRIGGER IF EXISTS trg_reviews_updated_at ON reviews")
    op.drop_table("reviews")
