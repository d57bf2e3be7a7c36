"""Request/response schemas for /auth and /users.

JSON uses camelCase keys (accessToken, refreshToken, createdAt); Python
code uses snake_case attributes. populate_by_name lets tests and internal
callers build models with either.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from authgate.auth.password import MAX_PASSWORD_BYTES, password_too_long


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Auth ────────────────────────────────────────────────


class LoginRequest(CamelModel):
    # No signup rules here: a username or password that could never have been
    # registered is just a wrong credential (401), not a malformed request
    username: str = Field(max_length=255)
    password: str = Field(max_length=1024)


class RefreshRequest(CamelModel):
    # Optional so a missing token is a 401 from the refresh guard, not a 422
    refresh_token: Optional[str] = None


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str


class CurrentUserResponse(CamelModel):
    id: str
    username: str


class MessageResponse(CamelModel):
    message: str


# ─── Users ───────────────────────────────────────────────


class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6)
    email: Optional[str] = Field(None, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if password_too_long(v):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class UserRead(CamelModel):
    """Public view of a user — never includes password or token hashes."""

    id: uuid.UUID
    username: str
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
