"""CLI tests — click's CliRunner against a throwaway SQLite file.

Learn: The CLI reads Settings from the environment through get_settings(),
which is cached, so each test sets AUTHGATE_* vars and clears the cache.
The commands call asyncio.run themselves, so these tests are synchronous.
"""

import asyncio

import pytest
from click.testing import CliRunner

from authgate.cli.main import cli
from authgate.config import get_settings
from authgate.db.engine import build_engine
from authgate.db.models import Base


async def _create_tables(url: str) -> None:
    engine = build_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@pytest.fixture()
def cli_env(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("AUTHGATE_DATABASE_URL", url)
    monkeypatch.setenv("AUTHGATE_BCRYPT_ROUNDS", "4")
    get_settings.cache_clear()
    asyncio.run(_create_tables(url))
    yield CliRunner()
    get_settings.cache_clear()


def test_create_user(cli_env):
    result = cli_env.invoke(cli, ["create-user", "alice", "pw123456", "--email", "a@example.com"])
    assert result.exit_code == 0, result.output
    assert "Created user 'alice'" in result.output


def test_create_user_duplicate(cli_env):
    assert cli_env.invoke(cli, ["create-user", "alice", "pw123456"]).exit_code == 0

    result = cli_env.invoke(cli, ["create-user", "alice", "pw123456"])
    assert result.exit_code == 1
    assert "Username already exists" in result.output


def test_create_user_rejects_short_password(cli_env):
    result = cli_env.invoke(cli, ["create-user", "alice", "abc"])
    assert result.exit_code == 1
    assert "at least 6 characters" in result.output


def test_sweep_with_nothing_to_clear(cli_env):
    result = cli_env.invoke(cli, ["sweep"])
    assert result.exit_code == 0, result.output
    assert "Cleared 0 expired refresh session(s)" in result.output


def test_create_user_rejects_password_over_72_bytes(cli_env):
    result = cli_env.invoke(cli, ["create-user", "alice", "a" * 80 + "pw123456"])
    assert result.exit_code == 1
    assert "at most 72 bytes" in result.output
