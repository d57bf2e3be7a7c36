"""Credential store — persistence for users and their refresh sessions.

Learn: This is the only shared mutable state in the system, so it is also
where concurrency is handled. Rotation is ONE conditional UPDATE:

    UPDATE users SET refresh_token_hash = :new, refresh_token_expires_at = :exp
    WHERE id = :id AND refresh_token_hash = :presented AND refresh_token_expires_at > :now

Two requests racing with the same refresh token both reach this statement,
but the database applies them one at a time and the second one no longer
matches the (already rotated) hash, so it updates zero rows. No
application-level lock is needed.

Reads use populate_existing so an object already in the session's identity
map is refreshed from the row instead of returning stale session state.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.db.models import User
from authgate.errors import ConflictError


class StoreError(Exception):
    """Raised when the database fails. Never shown to clients."""


class CredentialStore:
    """Async user/refresh-session storage on top of one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lookups ────────────────────────────────────────

    async def find_by_username(self, username: str) -> Optional[User]:
        return await self._first(select(User).where(User.username == username))

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self._first(select(User).where(User.id == user_id))

    async def _first(self, query) -> Optional[User]:
        try:
            result = await self.db.execute(
                query.execution_options(populate_existing=True)
            )
            return result.scalars().first()
        except SQLAlchemyError as e:
            raise StoreError("User lookup failed") from e

    # ─── Writes ─────────────────────────────────────────

    async def create(
        self,
        username: str,
        password_hash: str,
        email: Optional[str] = None,
    ) -> User:
        """Insert a user. Raises ConflictError if the username is taken."""
        user = User(username=username, password_hash=password_hash, email=email)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Username already exists")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("User insert failed") from e
        await self.db.refresh(user)
        return user

    async def update_refresh_token(
        self,
        user_id: uuid.UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Overwrite the user's refresh session (any previous token dies)."""
        await self._write(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token_hash=token_hash, refresh_token_expires_at=expires_at)
        )

    async def clear_refresh_token(self, user_id: uuid.UUID) -> None:
        await self._write(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token_hash=None, refresh_token_expires_at=None)
        )

    async def rotate_refresh_token(
        self,
        user_id: uuid.UUID,
        expected_hash: str,
        new_hash: str,
        new_expires_at: datetime,
        now: datetime,
    ) -> bool:
        """Compare-and-swap the refresh session.

        Returns False when the stored hash is no longer `expected_hash` or
        the session has expired — including when a concurrent rotation won.
        """
        rowcount = await self._write(
            update(User)
            .where(
                User.id == user_id,
                User.refresh_token_hash == expected_hash,
                User.refresh_token_expires_at > now,
            )
            .values(refresh_token_hash=new_hash, refresh_token_expires_at=new_expires_at)
        )
        return rowcount == 1

    async def sweep_expired(self, now: datetime) -> int:
        """Clear every refresh session that expired before `now`. Returns the count."""
        return await self._write(
            update(User)
            .where(User.refresh_token_expires_at < now)
            .values(refresh_token_hash=None, refresh_token_expires_at=None)
        )

    async def _write(self, statement) -> int:
        try:
            result = await self.db.execute(
                statement.execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("User update failed") from e
