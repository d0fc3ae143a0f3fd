"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lodge.config import Settings
from lodge.domain.error import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
)
from lodge.domain.repository import IdentityRepository, VerificationAttemptRepository
from lodge.persistence.database import create_engine, create_session_factory
from lodge.persistence.repository import (
    PostgresIdentityRepository,
    PostgresVerificationAttemptRepository,
)
from lodge.util.di.base import ProviderBase
from lodge.util.observability import instrument_sqlalchemy


# Failed logins and wrong codes bump counters before raising; those writes must persist
COUNTED_FAILURES = (InvalidCredentialsError, InvalidOrExpiredCodeError, AccountLockedError)


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide the database engine, disposed when the container closes."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        Committed when the request succeeds or ends in one of
        ``COUNTED_FAILURES``; rolled back on any other exception.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except COUNTED_FAILURES as e:
                await session.commit()
                logfire.info("Session committed after counted failure", error=type(e).__name__)
                raise
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide(scope=Scope.REQUEST)
    def get_identity_repository(self, session: AsyncSession) -> IdentityRepository:
        """Provide Identity repository."""
        return PostgresIdentityRepository(session)

    @provide(scope=Scope.REQUEST)
    def get_verification_attempt_repository(
        self, session: AsyncSession
    ) -> VerificationAttemptRepository:
        """Provide VerificationAttempt repository."""
        return PostgresVerificationAttemptRepository(session)
