"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything configuration-dependent (engine, session factory,
token signers) is built here ONCE from an explicit Settings object and
stored on app.state; dependencies read it from there. Lifespan manages
startup/shutdown (refresh-session sweeper, engine disposal).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from authgate import __version__
from authgate.api import api_router
from authgate.auth.dependencies import require_api_key
from authgate.auth.jwt import TokenSigner
from authgate.config import Settings, get_settings
from authgate.db.engine import build_engine, build_session_factory
from authgate.errors import AuthGateError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "authgate.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    sweeper = None
    sweep_task = None
    if settings.refresh_sweep_interval_seconds > 0:
        from authgate.services.auth_service import auth_service_factory
        from authgate.services.token_sweeper import RefreshTokenSweeper

        sweeper = RefreshTokenSweeper(
            app.state.session_factory,
            auth_service_factory(
                app.state.access_signer,
                app.state.refresh_signer,
                password_rounds=settings.bcrypt_rounds,
            ),
            interval=settings.refresh_sweep_interval_seconds,
        )
        sweep_task = asyncio.create_task(sweeper.run_loop())

    yield

    logger.info("authgate.shutdown")

    if sweeper is not None:
        sweeper.stop()
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass

    await app.state.engine.dispose()


async def handle_domain_error(request: Request, exc: AuthGateError) -> JSONResponse:
    """Map domain errors to their HTTP status. Only `detail` is exposed."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log everything, tell the client nothing."""
    logger.exception(
        "authgate.unhandled_error",
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="authgate",
        description="User accounts with access/refresh token authentication",
        version=__version__,
        lifespan=lifespan,
        dependencies=[Depends(require_api_key)],
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url, echo=settings.debug)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.access_signer = TokenSigner(settings.access_token_config())
    app.state.refresh_signer = TokenSigner(settings.refresh_token_config())

    app.add_exception_handler(AuthGateError, handle_domain_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RequestLog → guards → handler

    from authgate.middleware.request_id import RequestIdMiddleware
    from authgate.middleware.request_log import RequestLogMiddleware
    from authgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app
