"""Shared fixtures: a fresh SQLite file database per test."""
from types import SimpleNamespace

import pytest
import pytest_asyncio

from dicewizard.auth import hash_password
from dicewizard.config import Settings
from dicewizard.database import Database
from dicewizard.models import User, Character


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'dicewizard-test.db'}",
        QUERY_TIMEOUT_SECONDS=10,
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.DATABASE_URL)
    await db.init_db()
    yield db
    await db.dispose()


@pytest.fixture
def call(database):
    """Run one engine operation in its own session, like one request would."""
    async def _call(operation, *args, **kwargs):
        async with database.session() as session:
            return await operation(*args, db=session, **kwargs)
    return _call


@pytest.fixture
def make_user(database):
    async def _make(username):
        async with database.session() as session:
            user = User(username=username, password_hash=hash_password("secret-pass"))
            session.add(user)
            await session.commit()
            return user.id
    return _make


@pytest.fixture
def make_character(database):
    async def _make(user_id, name="Tordek", **fields):
        async with database.session() as session:
            char = Character(user_id=user_id, name=name, **fields)
            session.add(char)
            await session.commit()
            return char.id
    return _make


@pytest_asyncio.fixture
async def users(make_user):
    return SimpleNamespace(
        owner=await make_user("dungeon_master"),
        alice=await make_user("alice"),
        bob=await make_user("bob"),
    )
