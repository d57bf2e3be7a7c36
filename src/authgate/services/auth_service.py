"""Auth service — login, refresh rotation, logout, session sweep.

Learn: Session state lives in two columns on the user row
(refresh_token_hash, refresh_token_expires_at), not in an explicit state
machine object. The protocol over those columns:

    login    → verify password, mint pair, OVERWRITE the stored session
    refresh  → check presented token against the stored hash + expiry,
               mint pair, compare-and-swap the stored session
    logout   → clear the session (idempotent)
    sweep    → clear every expired session in one statement

A refresh token therefore works exactly once: the rotation replaces its
hash, so replaying it (or racing it) finds no match.

Failure policy: AuthGateError subclasses are meant for the caller and
propagate untouched. Anything else (database down, signing blew up) is
logged with its traceback here and replaced by an opaque InternalError.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.jwt import IdentityClaims, TokenSigner
from authgate.auth.password import (
    DEFAULT_ROUNDS,
    dummy_hash,
    hash_token,
    token_matches,
    verify_password,
)
from authgate.db.models import User, utcnow
from authgate.errors import (
    AuthGateError,
    InternalError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)
from authgate.services.credential_store import CredentialStore

logger = structlog.get_logger()

LOGOUT_MESSAGE = "Successfully logged out"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _verify_unknown_user(password: str, rounds: int) -> bool:
    return verify_password(password, dummy_hash(rounds))


class AuthService:
    """Business logic for the token lifecycle."""

    def __init__(
        self,
        store: CredentialStore,
        access_signer: TokenSigner,
        refresh_signer: TokenSigner,
        password_rounds: int = DEFAULT_ROUNDS,
    ):
        self.store = store
        self.access_signer = access_signer
        self.refresh_signer = refresh_signer
        self.password_rounds = password_rounds

    # ─── Login ──────────────────────────────────────────

    async def login(self, username: str, password: str) -> TokenPair:
        """Exchange username/password for a fresh token pair.

        Learn: An unknown username and a wrong password raise the SAME
        error, and both cost one bcrypt check, so the response does not
        reveal whether the account exists. Only the log says which.
        """
        log = logger.bind(username=username)
        try:
            user = await self.store.find_by_username(username)
            if user is None:
                await asyncio.to_thread(
                    _verify_unknown_user, password, self.password_rounds
                )
                log.warning("auth.login_failed", reason="unknown_user")
                raise InvalidCredentialsError()

            if not await asyncio.to_thread(verify_password, password, user.password_hash):
                log.warning("auth.login_failed", reason="bad_password", user_id=str(user.id))
                raise InvalidCredentialsError()

            now = utcnow()
            pair = self._mint(user, now)
            await self.store.update_refresh_token(
                user.id,
                hash_token(pair.refresh_token),
                self.refresh_signer.expires_at(now),
            )
            log.info("auth.login_succeeded", user_id=str(user.id))
            return pair
        except AuthGateError:
            raise
        except Exception as e:
            log.exception("auth.login_error")
            raise InternalError("Login failed") from e

    # ─── Refresh ────────────────────────────────────────

    async def refresh(self, user_id: uuid.UUID, refresh_token: str) -> TokenPair:
        """Rotate the user's refresh session and return a new pair.

        Absent user, hash mismatch, expiry and a lost race all raise the
        same InvalidRefreshTokenError.
        """
        log = logger.bind(user_id=str(user_id))
        try:
            now = utcnow()
            user = await self.store.find_by_id(user_id)
            if user is None:
                log.warning("auth.refresh_rejected", reason="unknown_user")
                raise InvalidRefreshTokenError()
            if not user.has_live_refresh_session(now):
                log.warning("auth.refresh_rejected", reason="no_live_session")
                raise InvalidRefreshTokenError()
            if not token_matches(refresh_token, user.refresh_token_hash):
                log.warning("auth.refresh_rejected", reason="hash_mismatch")
                raise InvalidRefreshTokenError()

            pair = self._mint(user, now)
            rotated = await self.store.rotate_refresh_token(
                user.id,
                expected_hash=hash_token(refresh_token),
                new_hash=hash_token(pair.refresh_token),
                new_expires_at=self.refresh_signer.expires_at(now),
                now=now,
            )
            if not rotated:
                log.warning("auth.refresh_rejected", reason="concurrent_rotation")
                raise InvalidRefreshTokenError()

            log.info("auth.refresh_succeeded")
            return pair
        except AuthGateError:
            raise
        except Exception as e:
            log.exception("auth.refresh_error")
            raise InternalError("Could not refresh tokens") from e

    # ─── Logout / current user ──────────────────────────

    async def logout(self, user_id: uuid.UUID) -> dict:
        """Drop the user's refresh session. Succeeds even if there is none."""
        try:
            await self.store.clear_refresh_token(user_id)
        except Exception as e:
            logger.exception("auth.logout_error", user_id=str(user_id))
            raise InternalError("Logout failed") from e
        logger.info("auth.logout_succeeded", user_id=str(user_id))
        return {"message": LOGOUT_MESSAGE}

    def get_current_user(self, claims: IdentityClaims) -> IdentityClaims:
        """Identity of the caller, straight from the already-verified token."""
        return claims

    # ─── Maintenance ────────────────────────────────────

    async def sweep_expired_refresh_tokens(self, now: Optional[datetime] = None) -> int:
        """Clear all refresh sessions that expired before `now`."""
        try:
            cleared = await self.store.sweep_expired(now or utcnow())
        except Exception as e:
            logger.exception("auth.sweep_error")
            raise InternalError("Sweep failed") from e
        logger.info("auth.sweep_completed", cleared=cleared)
        return cleared

    # ─── Helpers ────────────────────────────────────────

    def _mint(self, user: User, now: datetime) -> TokenPair:
        claims = IdentityClaims(subject=str(user.id), username=user.username)
        return TokenPair(
            access_token=self.access_signer.sign(claims, now=now),
            refresh_token=self.refresh_signer.sign(claims, now=now),
        )


def auth_service_factory(
    access_signer: TokenSigner,
    refresh_signer: TokenSigner,
    password_rounds: int = DEFAULT_ROUNDS,
) -> Callable[[AsyncSession], AuthService]:
    """Bind signers once; build an AuthService per session (sweeper, CLI)."""

    def make(db: AsyncSession) -> AuthService:
        return AuthService(
            CredentialStore(db),
            access_signer,
            refresh_signer,
            password_rounds=password_rounds,
        )

    return make
