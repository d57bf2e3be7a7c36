"""Request guards — admit/reject decisions made before a handler runs.

Learn: Each guard is a plain function of (what the request carried,
configuration) that either returns the admitted identity or raises a
domain error. They know nothing about FastAPI, so they are unit-tested
directly; auth/dependencies.py wires them into routes.

Guards never write to the store. Rotation happens later, inside
AuthService.refresh, which the /auth/refresh handler calls after the
refresh guard has admitted the request.
"""

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from authgate.auth.jwt import IdentityClaims, TokenError, TokenSigner
from authgate.auth.password import token_matches
from authgate.errors import InvalidApiKeyError, MissingApiKeyError, UnauthorizedError
from authgate.routing import RouteClass
from authgate.services.credential_store import CredentialStore

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class RefreshIdentity:
    """Identity admitted by the refresh guard, plus the token it presented."""

    user_id: uuid.UUID
    username: str
    refresh_token: str


def check_api_key(
    provided: Optional[str],
    expected: str,
    route_class: RouteClass = RouteClass.STANDARD,
) -> None:
    """Admit the request if it carries the configured API key.

    Routes classified API_KEY_EXEMPT are admitted without looking at the key.
    """
    if route_class is RouteClass.API_KEY_EXEMPT:
        return
    if not provided:
        raise MissingApiKeyError()
    if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidApiKeyError()


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return None


def check_access_token(
    authorization: Optional[str],
    signer: TokenSigner,
) -> IdentityClaims:
    """Verify the bearer access token and return its claims."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("Authentication required")
    try:
        claims = signer.verify(token)
        uuid.UUID(claims.subject)
    except (TokenError, ValueError) as e:
        logger.info("guard.access_rejected", error=str(e))
        raise UnauthorizedError("Invalid or expired token")
    return claims


async def check_refresh_token(
    token: Optional[str],
    signer: TokenSigner,
    store: CredentialStore,
    now: datetime,
) -> RefreshIdentity:
    """Verify a refresh token and cross-check it against the stored session.

    Same validity rule as AuthService.refresh: hash must match and the
    stored expiry must be in the future.
    """
    if not token:
        raise UnauthorizedError("Refresh token not provided")
    try:
        claims = signer.verify(token)
        user_id = claims.user_id
    except (TokenError, ValueError) as e:
        logger.info("guard.refresh_rejected", error=str(e))
        raise UnauthorizedError("Invalid refresh token")

    user = await store.find_by_id(user_id)
    if (
        user is None
        or not user.has_live_refresh_session(now)
        or not token_matches(token, user.refresh_token_hash)
    ):
        logger.info("guard.refresh_rejected", user_id=str(user_id), error="no matching session")
        raise UnauthorizedError("Invalid refresh token")

    return RefreshIdentity(user_id=user.id, username=user.username, refresh_token=token)
