"""PostgreSQL implementation of VerificationAttempt repository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lodge.domain.model import VerificationAttempt
from lodge.domain.repository import VerificationAttemptRepository
from lodge.domain.value import VerificationAttemptId
from lodge.persistence.mappers import (
    row_to_verification_attempt,
    verification_attempt_to_dict,
)
from lodge.persistence.tables import verification_attempts_table


class PostgresVerificationAttemptRepository(VerificationAttemptRepository):
    """PostgreSQL implementation of VerificationAttemptRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def insert(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Store a new attempt."""
        stmt = verification_attempts_table.insert().values(
            **verification_attempt_to_dict(attempt)
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return attempt

    async def find_latest_for_phone(self, phone: str) -> Optional[VerificationAttempt]:
        """Most recent attempt for a phone."""
        stmt = (
            select(verification_attempts_table)
            .where(verification_attempts_table.c.phone == phone)
            .order_by(verification_attempts_table.c.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_verification_attempt(dict(row)) if row else None

    async def find_created_since(
        self, phone: str, since: datetime
    ) -> list[VerificationAttempt]:
        """Attempts for a phone created at or after ``since``."""
        stmt = (
            select(verification_attempts_table)
            .where(verification_attempts_table.c.phone == phone)
            .where(verification_attempts_table.c.created_at >= since)
            .order_by(verification_attempts_table.c.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [
            row_to_verification_attempt(dict(row)) for row in result.mappings().all()
        ]

    async def increment_attempts(self, attempt_id: VerificationAttemptId) -> int:
        """Atomically add one failed attempt."""
        stmt = (
            verification_attempts_table.update()
            .where(verification_attempts_table.c.id == attempt_id)
            .values(attempts=verification_attempts_table.c.attempts + 1)
            .returning(verification_attempts_table.c.attempts)
        )
        result = await self.session.execute(stmt)
        attempts = result.scalar_one_or_none()
        await self.session.flush()
        return attempts or 0

    async def mark_consumed(
        self, attempt_id: VerificationAttemptId, consumed_at: datetime
    ) -> None:
        """Retire an attempt, keeping the row for rate limiting."""
        stmt = (
            verification_attempts_table.update()
            .where(verification_attempts_table.c.id == attempt_id)
            .where(verification_attempts_table.c.consumed_at.is_(None))
            .values(consumed_at=consumed_at)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def purge_created_before(self, before: datetime) -> int:
        """Delete attempts older than ``before``."""
        stmt = delete(verification_attempts_table).where(
            verification_attempts_table.c.created_at < before
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
