"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from resume_backend.app.composition.documents import create_account
from resume_backend.app.config import Settings
from resume_backend.app.db.context import RequestContext
from resume_backend.app.db.engine import create_session_factory, install_sqlite_pragmas
from resume_backend.app.db.models import Base
from resume_backend.app.models import Account


def sqlite_url(tmp_path: Path) -> str:
    # A file, not :memory:, so every NullPool connection sees the same tables.
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite engine with foreign keys enforced and all tables created."""
    engine = create_async_engine(sqlite_url(tmp_path), poolclass=NullPool, echo=False)
    install_sqlite_pragmas(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture
async def alice(session: AsyncSession, settings: Settings) -> Account:
    """Account with a master resume."""
    return await create_account(session, "alice", settings)


@pytest_asyncio.fixture
async def bob(session: AsyncSession, settings: Settings) -> Account:
    return await create_account(session, "bob", settings)


@pytest.fixture
def alice_ctx() -> RequestContext:
    return RequestContext(username="alice")


@pytest.fixture
def bob_ctx() -> RequestContext:
    return RequestContext(username="bob")


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
