"""RefreshTokenSweeper tests.

Learn: The sweeper goes through AuthService.sweep_expired_refresh_tokens,
so store failures surface as the service's opaque InternalError.
"""

import asyncio
from datetime import timedelta

import pytest

from authgate.auth.password import hash_token
from authgate.db.models import utcnow
from authgate.errors import InternalError
from authgate.services.auth_service import AuthService, auth_service_factory
from authgate.services.credential_store import StoreError
from authgate.services.token_sweeper import RefreshTokenSweeper


@pytest.mark.asyncio
async def test_run_once_clears_expired_sessions(app, make_auth_service, auth_service, store, alice):
    pair = await auth_service.login("alice", "pw123456")
    await store.update_refresh_token(
        alice.id, hash_token(pair.refresh_token), utcnow() - timedelta(seconds=5)
    )

    sweeper = RefreshTokenSweeper(app.state.session_factory, make_auth_service, interval=60)
    assert await sweeper.run_once() == 1
    assert await sweeper.run_once() == 0

    user = await store.find_by_id(alice.id)
    assert user.refresh_token_hash is None


@pytest.mark.asyncio
async def test_run_once_keeps_live_sessions(app, make_auth_service, auth_service, store, alice):
    pair = await auth_service.login("alice", "pw123456")

    sweeper = RefreshTokenSweeper(app.state.session_factory, make_auth_service)
    assert await sweeper.run_once() == 0
    user = await store.find_by_id(alice.id)
    assert user.refresh_token_hash == hash_token(pair.refresh_token)


@pytest.mark.asyncio
async def test_auth_service_factory_builds_per_session(app, settings):
    make = auth_service_factory(
        app.state.access_signer, app.state.refresh_signer, password_rounds=settings.bcrypt_rounds
    )
    async with app.state.session_factory() as db:
        service = make(db)
        assert isinstance(service, AuthService)
        assert service.store.db is db
        assert service.access_signer is app.state.access_signer
        assert service.password_rounds == 4


class FailingSweepStore:
    async def sweep_expired(self, now):
        raise StoreError("disk I/O error: /var/lib/postgresql")


@pytest.mark.asyncio
async def test_store_failure_surfaces_as_internal_error(app):
    def make_broken(db):
        return AuthService(FailingSweepStore(), app.state.access_signer, app.state.refresh_signer)

    sweeper = RefreshTokenSweeper(app.state.session_factory, make_broken)
    with pytest.raises(InternalError) as exc_info:
        await sweeper.run_once()
    assert exc_info.value.detail == "Sweep failed"


@pytest.mark.asyncio
async def test_run_loop_survives_failures_and_stops(app):
    calls = []

    def make_broken(db):
        calls.append(db)
        return AuthService(FailingSweepStore(), app.state.access_signer, app.state.refresh_signer)

    sweeper = RefreshTokenSweeper(app.state.session_factory, make_broken, interval=0.01)
    task = asyncio.create_task(sweeper.run_loop())
    await asyncio.sleep(0.05)

    sweeper.stop()
    await asyncio.wait_for(task, timeout=1)
    assert task.done()
    assert len(calls) >= 2
