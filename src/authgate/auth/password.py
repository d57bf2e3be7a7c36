"""Password and refresh-token hashing.

Learn: Passwords use bcrypt — it salts automatically and its work factor
(default rounds=12, ~250ms per hash) makes offline guessing expensive.
bcrypt only reads the first 72 bytes of its input, so longer passwords
are refused at hashing time and never verify; otherwise two passwords that
differ only after byte 72 would both log in.

Refresh tokens are different: they are long random-looking JWTs, so a
fast SHA-256 digest is enough, and bcrypt would actually be wrong here.
Two JWTs for the same user share a long header/payload prefix, which is
exactly the part bcrypt would keep.
"""

import hashlib
import hmac
from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Raises ValueError for passwords over
    MAX_PASSWORD_BYTES once encoded as UTF-8.
    """
    if password_too_long(password):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    bcrypt.checkpw does the comparison itself, in constant time.
    Malformed hashes and over-long passwords verify as False.
    """
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """A throwaway hash with the same cost as real ones.

    Login verifies against this when the username does not exist, so the
    response time does not reveal which usernames are registered.
    """
    return hash_password("authgate-timing-dummy", rounds=rounds)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a refresh token, for storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, token_hash: str | None) -> bool:
    """Compare a presented token against a stored digest in constant time."""
    if not token_hash:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)
