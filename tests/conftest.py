"""Test fixtures — a fresh app and SQLite database file per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own Settings pointing at a throwaway SQLite file
   (aiosqlite driver) and calls create_app(settings) — no env vars, no
   dependency overrides, the real guards and services run.
2. Tables are created from the ORM metadata before the test and the
   engine is disposed after, so nothing leaks between tests.
3. A file (not :memory:) is used so separate sessions get separate
   connections — the concurrent-refresh test depends on that.

bcrypt runs with the minimum cost (4 rounds) to keep the suite fast.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authgate.config import Settings
from authgate.db.models import Base
from authgate.main import create_app
from authgate.services.auth_service import AuthService
from authgate.services.credential_store import CredentialStore
from authgate.services.user_service import UserService

TEST_API_KEY = "test-api-key-3b8f1c0e9d2a4f6b"
ACCESS_SECRET = "test-access-secret-5c1d9e7a2b4f8c6e0a3d"
REFRESH_SECRET = "test-refresh-secret-9f2e4a6c8b0d1e3f5a7c"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'authgate.db'}",
        jwt_access_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        api_key=TEST_API_KEY,
        bcrypt_rounds=4,
        refresh_sweep_interval_seconds=0,
        environment="development",
    )


@pytest_asyncio.fixture()
async def app(settings):
    """App wired to the per-test database, with tables created."""
    application = create_app(settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield application
    finally:
        await application.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client that sends the configured API key on every request."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"api-key": TEST_API_KEY},
    ) as ac:
        yield ac


@pytest_asyncio.fixture()
async def keyless_client(app):
    """HTTP client WITHOUT the api-key header — for testing the key gate."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture()
def store(db_session) -> CredentialStore:
    return CredentialStore(db_session)


@pytest.fixture()
def make_auth_service(app, settings):
    """Build an AuthService on a given session, sharing the app's signers."""

    def _make(session) -> AuthService:
        return AuthService(
            CredentialStore(session),
            app.state.access_signer,
            app.state.refresh_signer,
            password_rounds=settings.bcrypt_rounds,
        )

    return _make


@pytest.fixture()
def auth_service(make_auth_service, db_session) -> AuthService:
    return make_auth_service(db_session)


@pytest.fixture()
def user_service(store, settings) -> UserService:
    return UserService(store, password_rounds=settings.bcrypt_rounds)


@pytest_asyncio.fixture()
async def alice(user_service):
    """An existing account: alice / pw123456."""
    return await user_service.create_user("alice", "pw123456", email="alice@example.com")
