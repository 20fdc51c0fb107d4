"""PostgreSQL-backed fixtures. Skipped unless TEST_DATABASE_URL is set."""

import os

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lotevivo.db.base import Base

_TEST_DB_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
async def engine() -> AsyncEngine:
    """Fresh schema per test on the PostgreSQL test database (JSONB, UUID)."""
    if not _TEST_DB_URL:
        pytest.skip("TEST_DATABASE_URL not set")

    engine = create_async_engine(_TEST_DB_URL, echo=False)

    # Import all models so metadata is populated
    import lotevivo.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
