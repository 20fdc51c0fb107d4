"""Async engine and session factory shared by all services."""

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lotevivo.core.config import get_settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str | None = None, *, create_tables: bool | None = None) -> None:
    """Create the engine and session factory once per process.

    Args:
        url: Overrides DATABASE_URL (tests point this at their own database)
        create_tables: Run ``Base.metadata.create_all``; defaults to
            DATABASE_CREATE_TABLES
    """
    global _engine, _session_factory

    if _engine is not None:
        return

    settings = get_settings()
    engine = create_async_engine(url or settings.database_url, echo=settings.database_echo, pool_pre_ping=True)

    if settings.database_create_tables if create_tables is None else create_tables:
        import lotevivo.db.models  # noqa: F401  (registers tables on Base.metadata)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("db_tables_ensured", tables=sorted(Base.metadata.tables))

    _engine = engine
    # expire_on_commit=False: services return ORM rows after the session closes
    _session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _session_factory

    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory.

    Raises:
        RuntimeError: init_db() has not run
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
