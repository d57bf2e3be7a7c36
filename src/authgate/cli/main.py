"""authgate CLI — run the server and do account/session maintenance.

Usage:
    authgate serve                              # Run the API with uvicorn
    authgate create-user alice 's3cret!' --email alice@example.com
    authgate sweep                              # Clear expired refresh sessions once
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click

from authgate.auth.password import MAX_PASSWORD_BYTES, password_too_long
from authgate.config import get_settings
from authgate.db.engine import build_engine, build_session_factory
from authgate.errors import AuthGateError


def _run(coro):
    """Run an async coroutine from a synchronous Click handler."""
    return asyncio.run(coro)


async def _with_session_factory(work):
    settings = get_settings()
    engine = build_engine(settings.database_url, echo=settings.debug)
    try:
        return await work(build_session_factory(engine), settings)
    finally:
        await engine.dispose()


@click.group()
def cli() -> None:
    """authgate — user accounts and token authentication."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: AUTHGATE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: AUTHGATE_PORT)")
def serve(host: Optional[str], port: Optional[int]) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authgate.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
    )


@cli.command("create-user")
@click.argument("username")
@click.argument("password")
@click.option("--email", default=None, help="Optional email address")
def create_user(username: str, password: str, email: Optional[str]) -> None:
    """Create an account (e.g. the first user, before any client exists)."""
    from authgate.services.credential_store import CredentialStore
    from authgate.services.user_service import UserService

    if not 3 <= len(username) <= 20:
        click.secho("Error: username must be 3-20 characters", fg="red", err=True)
        sys.exit(1)
    if len(password) < 6:
        click.secho("Error: password must be at least 6 characters", fg="red", err=True)
        sys.exit(1)
    if password_too_long(password):
        click.secho(
            f"Error: password must be at most {MAX_PASSWORD_BYTES} bytes", fg="red", err=True
        )
        sys.exit(1)

    async def work(session_factory, settings):
        async with session_factory() as db:
            service = UserService(CredentialStore(db), password_rounds=settings.bcrypt_rounds)
            return await service.create_user(username, password, email=email)

    try:
        user = _run(_with_session_factory(work))
    except AuthGateError as e:
        click.secho(f"Error: {e.detail}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created user '{user.username}' ({user.id})", fg="green")


@cli.command()
def sweep() -> None:
    """Clear every refresh session whose expiry has passed."""
    from authgate.auth.jwt import TokenSigner
    from authgate.services.auth_service import auth_service_factory
    from authgate.services.token_sweeper import RefreshTokenSweeper

    async def work(session_factory, settings):
        make_service = auth_service_factory(
            TokenSigner(settings.access_token_config()),
            TokenSigner(settings.refresh_token_config()),
            password_rounds=settings.bcrypt_rounds,
        )
        return await RefreshTokenSweeper(session_factory, make_service).run_once()

    try:
        cleared = _run(_with_session_factory(work))
    except AuthGateError as e:
        click.secho(f"Error: {e.detail}", fg="red", err=True)
        sys.exit(1)
    click.echo(f"Cleared {cleared} expired refresh session(s)")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
