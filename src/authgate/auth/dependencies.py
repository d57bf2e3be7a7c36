"""FastAPI auth dependencies.

Learn: These are used as Depends() to run the guards from auth/guards.py
against the incoming request. Order per request:

1. require_api_key — registered app-wide in main.py, so it runs first for
   every route. It asks routing.classify_route whether the route is exempt.
2. require_access_token / require_refresh_token — declared on the routes
   that need them.

Signers and settings come from app.state (built once in create_app), never
from module globals, so each app instance is fully described by the
Settings it was created with.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.guards import (
    RefreshIdentity,
    check_access_token,
    check_api_key,
    check_refresh_token,
)
from authgate.auth.jwt import IdentityClaims, TokenSigner
from authgate.config import Settings
from authgate.db.engine import get_db
from authgate.db.models import utcnow
from authgate.routing import classify_route
from authgate.schemas.auth import RefreshRequest
from authgate.services.auth_service import AuthService
from authgate.services.credential_store import CredentialStore
from authgate.services.user_service import UserService


# ─── App state accessors ─────────────────────────────────


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_access_signer(request: Request) -> TokenSigner:
    return request.app.state.access_signer


def get_refresh_signer(request: Request) -> TokenSigner:
    return request.app.state.refresh_signer


def get_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_auth_service(
    store: CredentialStore = Depends(get_store),
    access_signer: TokenSigner = Depends(get_access_signer),
    refresh_signer: TokenSigner = Depends(get_refresh_signer),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(
        store,
        access_signer,
        refresh_signer,
        password_rounds=settings.bcrypt_rounds,
    )


def get_user_service(
    store: CredentialStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> UserService:
    return UserService(store, password_rounds=settings.bcrypt_rounds)


# ─── Guards ──────────────────────────────────────────────


async def require_api_key(
    request: Request,
    api_key: Optional[str] = Header(None, alias="api-key"),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """App-wide API-key gate (skipped for routes classified as exempt)."""
    route_class = classify_route(request.method, request.url.path)
    check_api_key(api_key, settings.api_key, route_class)


async def require_access_token(
    authorization: Optional[str] = Header(None),
    signer: TokenSigner = Depends(get_access_signer),
) -> IdentityClaims:
    """Bearer access token → identity claims (401 otherwise)."""
    return check_access_token(authorization, signer)


async def require_refresh_token(
    body: RefreshRequest,
    signer: TokenSigner = Depends(get_refresh_signer),
    store: CredentialStore = Depends(get_store),
) -> RefreshIdentity:
    """Refresh token from the JSON body → identity (401 otherwise).

    Learn: Refresh tokens travel in the payload, not the Authorization
    header. The route handler gets the body through this dependency, so
    it does not redeclare it.
    """
    return await check_refresh_token(body.refresh_token, signer, store, utcnow())
