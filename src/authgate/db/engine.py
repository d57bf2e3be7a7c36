"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The app factory builds one engine per app and keeps it on app.state, so tests
can point a fresh app at a throwaway SQLite file.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine.

    Connection pool: min 5, max 20 connections. SQLite (tests, local dev)
    keeps SQLAlchemy's default pool for its driver.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory — each request gets its own session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
