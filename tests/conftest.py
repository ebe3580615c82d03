from pathlib import Path
import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Safety default for the module-level engine created during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import models  # noqa: E402,F401
from core.base import Base  # noqa: E402
from core.depends import get_session  # noqa: E402
from crud.nomination_crud import nomination_crud  # noqa: E402
from crud.poll_crud import poll_crud  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture()
async def engine(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)
    if engine.url.drivername != "sqlite+aiosqlite":
        raise RuntimeError(
            f"Test database must be SQLite, got '{engine.url.drivername}'. Refusing to run destructive test setup."
        )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, autocommit=False, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_poll(db_session):
    """Insert a poll and its nominations, returning (poll, {name: nomination})."""
    async def _make_poll(title="Manager of the Month", nominations=("Alice", "Bob", "Carol"), **poll_data):
        async with db_session.begin():
            poll = await poll_crud.create_poll(db_session, {"title": title, **poll_data})
            created = await nomination_crud.create_nominations(
                db_session,
                [{"poll_id": poll.id, "name": name, "manager": f"{name}'s manager"} for name in nominations],
            )
        return poll, {nomination.name: nomination for nomination in created}

    return _make_poll
