"""Verification attempt repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from lodge.domain.model import VerificationAttempt
from lodge.domain.value import VerificationAttemptId


class VerificationAttemptRepository(ABC):
    """Repository for one-time-code verification attempts."""

    @abstractmethod
    async def insert(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Store a new attempt."""
        pass

    @abstractmethod
    async def find_latest_for_phone(self, phone: str) -> Optional[VerificationAttempt]:
        """Most recently created attempt for a canonical phone, if any.

        Consumed attempts are returned too; a consumed latest attempt means
        there is no live code.
        """
        pass

    @abstractmethod
    async def find_created_since(
        self, phone: str, since: datetime
    ) -> list[VerificationAttempt]:
        """Attempts for a phone created at or after ``since``, oldest first.

        Used for rate limiting, so expired and consumed attempts count like
        any other send.
        """
        pass

    @abstractmethod
    async def increment_attempts(self, attempt_id: VerificationAttemptId) -> int:
        """Atomically add one failed attempt.

        Returns:
            The new attempt count (0 if the attempt no longer exists)
        """
        pass

    @abstractmethod
    async def mark_consumed(
        self, attempt_id: VerificationAttemptId, consumed_at: datetime
    ) -> None:
        """Retire an attempt so its code can no longer be checked."""
        pass

    @abstractmethod
    async def purge_created_before(self, before: datetime) -> int:
        """Delete attempts created before ``before``.

        Returns:
            Number of attempts deleted
        """
        pass
