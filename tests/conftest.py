"""Test configuration and fixtures for hollowdb tests."""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hollowdb import HollowDB
from hollowdb.models.base import Base
from hollowdb.services.server import ServerService

# Point at PostgreSQL to exercise row locking; defaults to a per-test SQLite file
TEST_DATABASE_URL = os.getenv("HOLLOWDB_TEST_DATABASE_URL", "")


@pytest.fixture
def database_url(tmp_path) -> str:
    return TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'hollowdb.db'}"


@pytest_asyncio.fixture(scope="function")
async def db_engine(database_url):
    """Create async engine for tests, with a fresh schema."""
    import hollowdb.models.server  # noqa: F401
    import hollowdb.models.versioned_attributes  # noqa: F401

    engine = create_async_engine(database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def server(db_session):
    """A registered server in the test session."""
    return await ServerService(db_session).create(name="nemo", facility_code="TEST1")


@pytest_asyncio.fixture
async def hdb(db_engine, database_url) -> AsyncGenerator[HollowDB]:
    """Create a HollowDB instance for testing."""
    instance = HollowDB(database_url=database_url)
    await instance.init()
    yield instance
    await instance.close()
