"""In-memory SQLite sessions and row factories for service tests."""
from datetime import datetime, timezone
from itertools import count

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cineverse.db.models import Base, RoleEnum, User

_seq = count(1)


def make_session() -> Session:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


def make_user(db: Session, role: RoleEnum = RoleEnum.VIEWER, **fields) -> User:
    n = next(_seq)
    user = User(
        username=fields.pop("username", f"user{n}"),
        email=fields.pop("email", f"user{n}@example.com"),
        password_hash="not-a-real-hash",
        role=role,
        critic_badge=role == RoleEnum.CRITIC,
        critic_since=datetime.now(timezone.utc) if role == RoleEnum.CRITIC else None,
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


LONG_CONTENT = (
    "A patient, gorgeous film that earns every one of its quiet moments "
    "and lands a final act worth the wait."
)
