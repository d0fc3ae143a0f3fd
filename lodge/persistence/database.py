"""Async PostgreSQL engine and session factory for the identity store."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lodge.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the asyncpg engine.

    Connections are tagged ``lodge-identity`` so identity traffic is visible
    in ``pg_stat_activity``. SQL is echoed in debug mode.
    """
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        connect_args={"server_settings": {"application_name": "lodge-identity"}},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the request session factory.

    Objects stay readable after commit, and nothing is flushed implicitly:
    repositories decide when a write hits the database, which keeps unique
    violations inside their savepoints.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
