"""Settings validation and token config tests."""

import pytest
from pydantic import ValidationError

from authgate.auth.jwt import ACCESS, REFRESH
from authgate.config import Settings

SECURE = {
    "jwt_access_secret": "prod-access-4f0c2b9e7a1d3c5e8b6a",
    "jwt_refresh_secret": "prod-refresh-1e8d6c4a2f0b9e7c5a3d",
    "api_key": "prod-api-key-7c3e9a1f5b2d8e4c6a0f",
}


def test_development_accepts_placeholders():
    settings = Settings(environment="development")
    assert settings.bcrypt_rounds == 12
    assert settings.access_token_expire_seconds == 3600
    assert settings.refresh_token_expire_seconds == 604800


def test_production_accepts_real_secrets():
    settings = Settings(environment="production", **SECURE)
    assert settings.environment == "production"


@pytest.mark.parametrize("field", ["jwt_access_secret", "jwt_refresh_secret", "api_key"])
def test_production_rejects_placeholder_secrets(field):
    values = {**SECURE}
    values.pop(field)
    with pytest.raises(ValidationError, match=field.upper()):
        Settings(environment="production", **values)


def test_production_rejects_empty_secret():
    with pytest.raises(ValidationError):
        Settings(environment="production", **{**SECURE, "api_key": ""})


def test_production_rejects_shared_token_secret():
    values = {**SECURE, "jwt_refresh_secret": SECURE["jwt_access_secret"]}
    with pytest.raises(ValidationError, match="must differ"):
        Settings(environment="production", **values)


def test_bcrypt_rounds_bounds():
    with pytest.raises(ValidationError):
        Settings(bcrypt_rounds=3)
    with pytest.raises(ValidationError):
        Settings(bcrypt_rounds=32)


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.api_key = "something-else"


def test_token_configs():
    settings = Settings(
        access_token_expire_seconds=60, refresh_token_expire_seconds=120, **SECURE
    )
    access = settings.access_token_config()
    refresh = settings.refresh_token_config()

    assert (access.secret, access.ttl_seconds, access.token_type) == (
        SECURE["jwt_access_secret"], 60, ACCESS,
    )
    assert (refresh.secret, refresh.ttl_seconds, refresh.token_type) == (
        SECURE["jwt_refresh_secret"], 120, REFRESH,
    )
    assert access.algorithm == refresh.algorithm == "HS256"


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("AUTHGATE_ACCESS_TOKEN_EXPIRE_SECONDS", "90")
    assert Settings().access_token_expire_seconds == 90
