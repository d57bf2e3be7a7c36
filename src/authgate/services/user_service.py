"""User service — account creation and lookup."""

import asyncio
import uuid
from typing import Optional

import structlog

from authgate.auth.password import DEFAULT_ROUNDS, hash_password
from authgate.db.models import User
from authgate.errors import AuthGateError, ConflictError, InternalError, NotFoundError
from authgate.services.credential_store import CredentialStore

logger = structlog.get_logger()


class UserService:
    def __init__(self, store: CredentialStore, password_rounds: int = DEFAULT_ROUNDS):
        self.store = store
        self.password_rounds = password_rounds

    async def create_user(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
    ) -> User:
        """Create an account. Raises ConflictError if the username is taken."""
        try:
            if await self.store.find_by_username(username) is not None:
                logger.warning("users.create_conflict", username=username)
                raise ConflictError("Username already exists")
            password_hash = await asyncio.to_thread(
                hash_password, password, self.password_rounds
            )
            user = await self.store.create(username, password_hash, email=email)
        except AuthGateError:
            raise
        except Exception as e:
            logger.exception("users.create_error", username=username)
            raise InternalError("Failed to create user") from e
        logger.info("users.created", user_id=str(user.id), username=username)
        return user

    async def get_user(self, user_id: uuid.UUID) -> User:
        try:
            user = await self.store.find_by_id(user_id)
        except Exception as e:
            logger.exception("users.lookup_error", user_id=str(user_id))
            raise InternalError("Failed to fetch user") from e
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user
