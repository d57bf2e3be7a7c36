"""Password and refresh-token hashing tests."""

import pytest

from authgate.auth.password import (
    dummy_hash,
    hash_password,
    hash_token,
    password_too_long,
    token_matches,
    verify_password,
)


def test_hash_and_verify():
    hashed = hash_password("pw123456", rounds=4)
    assert hashed.startswith("$2b$04$")
    assert verify_password("pw123456", hashed)


def test_hash_is_salted():
    """Same password, different hashes — both still verify."""
    a = hash_password("pw123456", rounds=4)
    b = hash_password("pw123456", rounds=4)
    assert a != b
    assert verify_password("pw123456", a)
    assert verify_password("pw123456", b)


def test_single_character_mutations_fail():
    password = "pw123456"
    hashed = hash_password(password, rounds=4)
    mutations = [
        "Pw123456",      # case change
        "pw12345",       # dropped char
        "pw1234567",     # extra char
        "pw123457",      # substituted char
    ]
    for candidate in mutations:
        assert not verify_password(candidate, hashed), candidate


def test_default_cost_is_twelve():
    assert hash_password("x").startswith("$2b$12$")


def test_malformed_hash_verifies_false():
    assert verify_password("pw123456", "not-a-bcrypt-hash") is False
    assert verify_password("pw123456", "") is False


def test_dummy_hash_is_cached_per_cost():
    assert dummy_hash(4) is dummy_hash(4)
    assert dummy_hash(4).startswith("$2b$04$")


def test_token_hash_matches_only_same_token():
    digest = hash_token("token-one")
    assert len(digest) == 64
    assert token_matches("token-one", digest)
    assert not token_matches("token-two", digest)
    assert not token_matches("token-one", None)
    assert not token_matches("token-one", "")


def test_password_over_bcrypt_limit_is_refused():
    """bcrypt would silently ignore bytes past 72, so they are never hashed."""
    with pytest.raises(ValueError, match="72 bytes"):
        hash_password("a" * 73, rounds=4)
    # 37 two-byte characters: short in characters, too long in bytes
    assert password_too_long("é" * 37)
    assert not password_too_long("a" * 72)


def test_long_password_mutations_fail():
    password = "a" * 64 + "pw123456"  # exactly 72 bytes
    hashed = hash_password(password, rounds=4)

    assert verify_password(password, hashed)
    assert not verify_password(password[:-1] + "7", hashed)
    assert not verify_password(password + "x", hashed)
    assert not verify_password(password + "pw123456", hashed)
