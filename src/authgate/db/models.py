"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations under db/migrations mirror these models.

Key concepts:
- UUID primary keys, using the portable `Uuid` type (native on PostgreSQL,
  CHAR(32) on SQLite for tests)
- server_default for DB-level defaults (work even for raw SQL inserts)
- The refresh-session columns are always written together: both set on
  login/refresh, both cleared on logout/sweep
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class User(Base):
    """An account that can log in.

    Learn: `password_hash` and `refresh_token_hash` are one-way hashes and
    never leave the service layer. A user has a live refresh session only
    while both refresh columns are set and the expiry is in the future.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_refresh_token_expires_at", "refresh_token_expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    def has_live_refresh_session(self, now: datetime) -> bool:
        expires_at = as_utc(self.refresh_token_expires_at)
        return bool(self.refresh_token_hash) and expires_at is not None and now < expires_at
