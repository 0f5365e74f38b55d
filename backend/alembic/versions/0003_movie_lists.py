"""Movie lists, entries, likes and follows.

Revision ID: 0003
Revises: 0002
Create Date: 2026-09-21 11:05:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "0003"
down_revision: Union[str, None] = "0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIST_CATEGORIES = ("favorites", "watchlist", "custom", "ranked", "genre", "year")


def upgrade() -> None:
    # ── movie_lists ───────────────────────────────────────────────────────
    op.create_table(
        "movie_lists",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("creator_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("category", sa.Enum(*LIST_CATEGORIES, name="list_category"),
                  nullable=False, server_default="custom"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("tags", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("cover_image", sa.String(500), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "length(btrim(title)) >= 1",
            name="chk_movie_list_title",
        ),
    )
    op.create_index("ix_movie_lists_creator_id", "movie_lists", ["creator_id"])
    op.create_index("idx_movie_lists_public_created", "movie_lists", ["is_public", "created_at"])

    op.execute("""
        CREATE TRIGGER trg_movie_lists_updated_at
        BEFORE UPDATE ON movie_lists
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)

    # ── movie_list_entries ────────────────────────────────────────────────
    op.create_table(
        "movie_list_entries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("list_id", UUID(as_uuid=True), sa.ForeignKey("movie_lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("movie_title", sa.String(500), nullable=False),
        sa.Column("movie_poster", sa.String(500), nullable=False, server_default=""),
        sa.Column("movie_year", sa.Integer(), nullable=True),
        sa.Column("note", sa.String(200), nullable=False, server_default=""),
        sa.Column("rank", sa.Integer(), nullable=True),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("list_id", "movie_id", name="uq_movie_list_entry"),
    )
    op.create_index("ix_movie_list_entries_list_id", "movie_list_entries", ["list_id"])

    # ── list_likes / list_follows ─────────────────────────────────────────
    for table in ("list_likes", "list_follows"):
        op.create_table(
            table,
            sa.Column("list_id", UUID(as_uuid=True), sa.ForeignKey("movie_lists.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )


def downgrade() -> None:
    op.drop_table("list_follows")
    op.drop_table("list_likes")
    op.drop_table("movie_list_entries")
    op.execute("DROP TRIGGER IF EXISTS trg_movie_lists_updated_at ON movie_lists")
    op.drop_table("movie_lists")
    op.execute("DROP TYPE IF EXISTS list_category")
