"""Auth API — login, token refresh, current user, logout.

Learn: Routes for the token lifecycle:
- POST /auth/login   → username/password → access + refresh tokens
- POST /auth/refresh → refresh token (body) → rotated pair
- GET  /auth/me      → identity from the bearer access token
- POST /auth/logout  → drop the refresh session (api-key exempt)

Handlers stay thin: guards run as dependencies, AuthService does the work,
and domain errors become HTTP responses in main.py's exception handler.
"""

from fastapi import APIRouter, Depends

from authgate.auth.dependencies import (
    get_auth_service,
    require_access_token,
    require_refresh_token,
)
from authgate.auth.guards import RefreshIdentity
from authgate.auth.jwt import IdentityClaims
from authgate.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    MessageResponse,
    TokenResponse,
)
from authgate.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Login with username and password → JWT tokens."""
    pair = await service.login(body.username, body.password)
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    identity: RefreshIdentity = Depends(require_refresh_token),
    service: AuthService = Depends(get_auth_service),
):
    """Exchange a refresh token for a new pair. The old one stops working."""
    pair = await service.refresh(identity.user_id, identity.refresh_token)
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    claims: IdentityClaims = Depends(require_access_token),
    service: AuthService = Depends(get_auth_service),
):
    """Get the current authenticated user's identity."""
    current = service.get_current_user(claims)
    return CurrentUserResponse(id=current.subject, username=current.username)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    claims: IdentityClaims = Depends(require_access_token),
    service: AuthService = Depends(get_auth_service),
):
    """Log out: the current refresh token can no longer be used."""
    return await service.logout(claims.user_id)
