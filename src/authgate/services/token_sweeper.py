"""Background sweep of expired refresh sessions.

Learn: Expired refresh tokens are already rejected at refresh time, so the
sweep is housekeeping: it nulls out stale hashes so the table only holds
live sessions. Each run opens its own session and goes through
AuthService.sweep_expired_refresh_tokens, the same call the `authgate sweep`
command makes. It is a single bulk UPDATE, safe to run from several
processes at once (each row is cleared by whichever run gets there first).

Usage:
    sweeper = RefreshTokenSweeper(session_factory, make_auth_service, interval=3600)
    asyncio.create_task(sweeper.run_loop())
"""

import asyncio
from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.services.auth_service import AuthService

logger = structlog.get_logger()

AuthServiceFactory = Callable[[AsyncSession], AuthService]


class RefreshTokenSweeper:
    """Periodically clears refresh sessions whose expiry has passed."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        service_factory: AuthServiceFactory,
        interval: float = 3600.0,
    ):
        self.session_factory = session_factory
        self.service_factory = service_factory
        self.interval = interval
        self._running = False

    async def run_once(self) -> int:
        """Run one sweep in its own session. Returns the number cleared."""
        async with self.session_factory() as db:
            cleared = await self.service_factory(db).sweep_expired_refresh_tokens()
        if cleared:
            logger.info("token_sweeper.swept", cleared=cleared)
        return cleared

    async def run_loop(self) -> None:
        """Main worker loop — sweep, sleep, repeat until stopped."""
        self._running = True
        logger.info("token_sweeper.started", interval=self.interval)

        while self._running:
            try:
                await self.run_once()
            except Exception:
                logger.exception("token_sweeper.error")
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        """Signal the worker to stop."""
        self._running = False
        logger.info("token_sweeper.stopping")
