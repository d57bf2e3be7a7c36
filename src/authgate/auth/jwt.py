"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (1h), sent as `Authorization: Bearer ...`
- Refresh token: long-lived (7 days), exchanged for a new pair

The two kinds are signed with DIFFERENT secrets and carry a `type` claim,
so neither can be passed off as the other. Every token also gets a random
`jti`, which makes two tokens minted in the same second still distinct —
refresh rotation depends on that.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

ACCESS = "access"
REFRESH = "refresh"

REQUIRED_CLAIMS = ("sub", "username", "type", "exp")


class TokenError(Exception):
    """Raised when a token is malformed, tampered with, expired or of the wrong type."""


class MissingClaimError(TokenError):
    """Raised when a signature checks out but a required claim is absent."""


@dataclass(frozen=True)
class IdentityClaims:
    """Identity carried inside a verified token."""

    subject: str
    username: str

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.subject)


@dataclass(frozen=True)
class TokenConfig:
    """Secret and lifetime for one kind of token. Built once at startup."""

    secret: str
    ttl_seconds: int
    token_type: str
    algorithm: str = "HS256"


def sign_token(
    claims: IdentityClaims,
    secret: str,
    ttl_seconds: int,
    token_type: str = ACCESS,
    algorithm: str = "HS256",
    now: Optional[datetime] = None,
) -> str:
    """Create a signed JWT carrying `claims` that expires after `ttl_seconds`."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": claims.subject,
        "username": claims.username,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": issued,
        "exp": issued + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def verify_token(
    token: str,
    secret: str,
    token_type: str = ACCESS,
    algorithm: str = "HS256",
) -> IdentityClaims:
    """Verify and decode a JWT.

    Returns the identity claims on success.
    Raises MissingClaimError if a required claim is absent, TokenError on
    any other failure.
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.MissingRequiredClaimError as e:
        raise MissingClaimError(f"Missing claim: {e.claim}")
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        raise MissingClaimError(f"Missing claim: {', '.join(missing)}")
    if payload["type"] != token_type:
        raise TokenError(f"Expected {token_type} token")

    return IdentityClaims(subject=str(payload["sub"]), username=str(payload["username"]))


class TokenSigner:
    """Signs and verifies one kind of token with a fixed TokenConfig."""

    def __init__(self, config: TokenConfig):
        self.config = config

    @property
    def token_type(self) -> str:
        return self.config.token_type

    def sign(self, claims: IdentityClaims, now: Optional[datetime] = None) -> str:
        return sign_token(
            claims,
            self.config.secret,
            self.config.ttl_seconds,
            token_type=self.config.token_type,
            algorithm=self.config.algorithm,
            now=now,
        )

    def verify(self, token: str) -> IdentityClaims:
        return verify_token(
            token,
            self.config.secret,
            token_type=self.config.token_type,
            algorithm=self.config.algorithm,
        )

    def expires_at(self, now: datetime) -> datetime:
        """Expiry of a token signed at `now`."""
        return now + timedelta(seconds=self.config.ttl_seconds)
