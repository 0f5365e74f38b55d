"""
SQLAlchemy ORM models.

Schema mirrors the Alembic migrations in alembic/versions — column names,
constraints and indexes are all intentional. Types are the portable SQLAlchemy
ones (Uuid, JSON with a JSONB variant) so the same metadata also builds the
in-memory SQLite database used by the test-suite.

Movie references (movie_id) are TMDB integer ids. They are never validated
locally; title/poster/year next to them are display snapshots taken at write
time and are allowed to go stale.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ─────────────────────────────────────────────────────────────────────

class RoleEnum(str, PyEnum):
    VIEWER = "viewer"
    CRITIC = "critic"
    ADMIN = "admin"


class SavedCollectionEnum(str, PyEnum):
    WATCHLIST = "watchlist"
    FAVORITE = "favorite"


class ListCategoryEnum(str, PyEnum):
    FAVORITES = "favorites"
    WATCHLIST = "watchlist"
    CUSTOM = "custom"
    RANKED = "ranked"
    GENRE = "genre"
    YEAR = "year"


class ActivityTypeEnum(str, PyEnum):
    REVIEW_CREATED = "review_created"
    REVIEW_LIKED = "review_liked"
    MOVIE_FAVORITED = "movie_favorited"
    MOVIE_WATCHLISTED = "movie_watchlisted"
    LIST_CREATED = "list_created"
    LIST_UPDATED = "list_updated"
    USER_FOLLOWED = "user_followed"
    COMMENT_ADDED = "comment_added"


class ActivityTargetEnum(str, PyEnum):
    REVIEW = "review"
    LIST = "list"
    USER = "user"
    MOVIE = "movie"


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    # Persist the lowercase values, not the member names
    return [member.value for member in enum_cls]


def _enum_column_type(enum_cls: type[PyEnum], name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, values_callable=_enum_values, validate_strings=True)


# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Identity ──────────────────────────────────────────────────────────────────

class User(Base):
    """
    Application user.

    username / email are stored lowercased by the auth service, which makes
    the unique constraints case-insensitive in practice.

    Privacy flags gate what other users see on the profile page:
    email / phone / date_of_birth are hidden by default, watchlist /
    favorites are shown by default.
    """
    __tablename__ = "users"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Primary key — UUID v4",
    )
    username = Column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Lowercased username (3-20 chars, alphanumeric + underscore)",
    )
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(
        _enum_column_type(RoleEnum, "user_role"),
        nullable=False,
        default=RoleEnum.VIEWER,
    )

    # Profile
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    bio = Column(String(500), nullable=False, default="")
    avatar = Column(String(500), nullable=False, default="")
    location = Column(String(100), nullable=False, default="")
    website = Column(String(255), nullable=False, default="")

    # Private fields: only visible to the owner unless a show_* flag is set
    phone = Column(String(30), nullable=False, default="")
    date_of_birth = Column(Date, nullable=True)

    # Critic-specific fields
    critic_badge = Column(Boolean, default=False, nullable=False)
    critic_since = Column(DateTime(timezone=True), nullable=True)
    specialization = Column(JSONType, nullable=False, default=list)

    # Privacy settings
    show_email = Column(Boolean, default=False, nullable=False)
    show_phone = Column(Boolean, default=False, nullable=False)
    show_date_of_birth = Column(Boolean, default=False, nullable=False)
    show_watchlist = Column(Boolean, default=True, nullable=False)
    show_favorites = Column(Boolean, default=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    # Follows where this user is the one following others
    following_assoc = relationship(
        "Follow",
        foreign_keys="Follow.follower_id",
        back_populates="follower",
        cascade="all, delete-orphan",
    )
    # Follows where this user is being followed
    followers_assoc = relationship(
        "Follow",
        foreign_keys="Follow.following_id",
        back_populates="following_user",
        cascade="all, delete-orphan",
    )
    saved_movies = relationship(
        "SavedMovie",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="SavedMovie.added_at",
    )
    reviews = relationship(
        "Review",
        back_populates="author",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )
    lists = relationship(
        "MovieList",
        back_populates="creator",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN

    @property
    def is_critic(self) -> bool:
        return self.role == RoleEnum.CRITIC

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"


class Follow(Base):
    """
    Directed follow edge: follower → following_user.

    One row serves both lookup directions (a user's `following` and the
    target's `followers`), so inserting or deleting it is the whole graph
    update.
    """
    __tablename__ = "follows"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    follower_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    following_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow"),
        CheckConstraint("follower_id <> following_id", name="chk_no_self_follow"),
    )

    follower = relationship("User", foreign_keys=[follower_id], back_populates="following_assoc")
    following_user = relationship("User", foreign_keys=[following_id], back_populates="followers_assoc")

    def __repr__(self) -> str:
        return f"<Follow {self.follower_id} → {self.following_id}>"


class SavedMovie(Base):
    """A movie on a user's watchlist or favorites, keyed by TMDB id."""
    __tablename__ = "saved_movies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    collection = Column(
        _enum_column_type(SavedCollectionEnum, "saved_collection"),
        nullable=False,
    )
    movie_id = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "collection", "movie_id", name="uq_saved_movie"),
    )

    user = relationship("User", back_populates="saved_movies")


# ── Reviews ───────────────────────────────────────────────────────────────────

class Review(Base):
    """
    A user's review of a movie. One review per author per movie.

    likes_count / comments_count are derived from the like and comment rows;
    nothing is cached on the review itself.
    """
    __tablename__ = "reviews"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    author_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    movie_id = Column(Integer, nullable=False)
    movie_title = Column(String(500), nullable=False)
    movie_poster = Column(String(500), nullable=False, default="")
    movie_year = Column(Integer, nullable=True)

    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    contains_spoilers = Column(Boolean, default=False, nullable=False)
    tags = Column(JSONType, nullable=False, default=list)

    is_published = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    is_critic_review = Column(Boolean, default=False, nullable=False)
    critic_score = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("author_id", "movie_id", name="uq_review_author_movie"),
        CheckConstraint("rating BETWEEN 1 AND 10", name="chk_review_rating"),
        CheckConstraint(
            "critic_score IS NULL OR critic_score BETWEEN 0 AND 100",
            name="chk_review_critic_score",
        ),
        CheckConstraint(
            "length(trim(content)) >= 50 AND length(content) <= 5000",
            name="chk_review_content_len",
        ),
        Index("idx_reviews_movie_created", "movie_id", "created_at"),
    )

    author = relationship("User", back_populates="reviews")
    likes = relationship(
        "ReviewLike",
        back_populates="review",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "ReviewComment",
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="ReviewComment.created_at",
    )

    @property
    def likes_count(self) -> int:
        return len(self.likes)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def __repr__(self) -> str:
        return f"<Review author={self.author_id} movie={self.movie_id}>"


class ReviewLike(Base):
    """One like per user per review."""
    __tablename__ = "review_likes"

    review_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("reviews.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    review = relationship("Review", back_populates="likes")
    user = relationship("User")


class ReviewComment(Base):
    """A comment on a review, kept in creation order."""
    __tablename__ = "review_comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    review_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "length(content) >= 1 AND length(content) <= 1000",
            name="chk_review_comment_len",
        ),
    )

    review = relationship("Review", back_populates="comments")
    author = relationship("User")


# ── Movie lists ───────────────────────────────────────────────────────────────

class MovieList(Base):
    """
    A user-curated, ordered collection of movies.
    Private lists are only visible to their creator (and admins).
    """
    __tablename__ = "movie_lists"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    category = Column(
        _enum_column_type(ListCategoryEnum, "list_category"),
        nullable=False,
        default=ListCategoryEnum.CUSTOM,
    )
    is_public = Column(Boolean, default=True, nullable=False)
    tags = Column(JSONType, nullable=False, default=list)
    cover_image = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("length(trim(title)) >= 1", name="chk_movie_list_title"),
        Index("idx_movie_lists_public_created", "is_public", "created_at"),
    )

    creator = relationship("User", back_populates="lists")
    entries = relationship(
        "MovieListEntry",
        back_populates="movie_list",
        cascade="all, delete-orphan",
        order_by="MovieListEntry.rank",
    )
    likes = relationship(
        "ListLike",
        back_populates="movie_list",
        cascade="all, delete-orphan",
    )
    followers = relationship(
        "ListFollow",
        back_populates="movie_list",
        cascade="all, delete-orphan",
    )

    @property
    def movie_count(self) -> int:
        return len(self.entries)

    @property
    def likes_count(self) -> int:
        return len(self.likes)

    @property
    def followers_count(self) -> int:
        return len(self.followers)

    def __repr__(self) -> str:
        return f"<MovieList id={self.id} title={self.title!r}>"


class MovieListEntry(Base):
    """A movie inside a list, with an optional rank and note."""
    __tablename__ = "movie_list_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    list_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    movie_id = Column(Integer, nullable=False)
    movie_title = Column(String(500), nullable=False)
    movie_poster = Column(String(500), nullable=False, default="")
    movie_year = Column(Integer, nullable=True)
    note = Column(String(200), nullable=False, default="")
    rank = Column(Integer, nullable=True)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("list_id", "movie_id", name="uq_movie_list_entry"),
    )

    movie_list = relationship("MovieList", back_populates="entries")


class ListLike(Base):
    """One like per user per list."""
    __tablename__ = "list_likes"

    list_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    movie_list = relationship("MovieList", back_populates="likes")
    user = relationship("User")


class ListFollow(Base):
    """A user following a list."""
    __tablename__ = "list_follows"

    list_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    movie_list = relationship("MovieList", back_populates="followers")
    user = relationship("User")


# ── Activity log ──────────────────────────────────────────────────────────────

class Activity(Base):
    """
    Immutable feed event.

    The target is a tagged union: target_type says which kind of entity
    target_id points at (review / list / user); movie targets carry only
    movie_id. `details` holds display data copied at creation time so the
    feed never re-joins:

        {
          "movie_title": "...",
          "movie_poster": "...",
          "review_title": "...",
          "list_title": "...",
          "target_username": "..."
        }

    Rows older than ACTIVITY_RETENTION_DAYS are filtered from every read and
    deleted by the purge task.
    """
    __tablename__ = "activities"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    activity_type = Column(
        _enum_column_type(ActivityTypeEnum, "activity_type"),
        nullable=False,
    )
    target_type = Column(
        _enum_column_type(ActivityTargetEnum, "activity_target"),
        nullable=False,
    )
    # Not a foreign key: points at reviews, movie_lists or users
    target_id = Column(Uuid(as_uuid=True), nullable=True)
    movie_id = Column(Integer, nullable=True)
    details = Column("metadata", JSONType, nullable=False, default=dict)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
        Index("idx_activities_public_created", "is_public", "created_at"),
        CheckConstraint(
            "(target_type = 'movie' AND movie_id IS NOT NULL) OR "
            "(target_type <> 'movie' AND target_id IS NOT NULL)",
            name="chk_activity_target",
        ),
    )

    user = relationship("User")

    def __repr__(self) -> str:
        return f"<Activity {self.activity_type} by={self.user_id}>"
