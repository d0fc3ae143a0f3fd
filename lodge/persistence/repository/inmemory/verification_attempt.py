"""In-memory verification attempt repository for testing."""

from datetime import datetime
from typing import Optional

from lodge.domain.model import VerificationAttempt
from lodge.domain.repository import VerificationAttemptRepository
from lodge.domain.value import VerificationAttemptId


class InMemoryVerificationAttemptRepository(VerificationAttemptRepository):
    """In-memory implementation of VerificationAttemptRepository for testing."""

    def __init__(self) -> None:
        self._attempts: dict[VerificationAttemptId, VerificationAttempt] = {}

    async def insert(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Store a new attempt."""
        self._attempts[attempt.id] = attempt
        return attempt

    async def find_latest_for_phone(self, phone: str) -> Optional[VerificationAttempt]:
        """Most recent attempt for a phone."""
        candidates = [a for a in self._attempts.values() if a.phone == phone]
        if not candidates:
            return None
        return max(candidates, key=lambda a: a.created_at)

    async def find_created_since(
        self, phone: str, since: datetime
    ) -> list[VerificationAttempt]:
        """Attempts for a phone created at or after ``since``."""
        recent = [
            a
            for a in self._attempts.values()
            if a.phone == phone and a.created_at >= since
        ]
        return sorted(recent, key=lambda a: a.created_at)

    async def increment_attempts(self, attempt_id: VerificationAttemptId) -> int:
        """Add one failed attempt."""
        attempt = self._attempts.get(attempt_id)
        if not attempt:
            return 0
        updated = attempt.model_copy(update={"attempts": attempt.attempts + 1})
        self._attempts[attempt_id] = updated
        return updated.attempts

    async def mark_consumed(
        self, attempt_id: VerificationAttemptId, consumed_at: datetime
    ) -> None:
        """Retire an attempt, keeping it for rate limiting."""
        attempt = self._attempts.get(attempt_id)
        if attempt and not attempt.is_consumed:
            self._attempts[attempt_id] = attempt.model_copy(
                update={"consumed_at": consumed_at}
            )

    async def purge_created_before(self, before: datetime) -> int:
        """Delete attempts older than ``before``."""
        stale = [a.id for a in self._attempts.values() if a.created_at < before]
        for attempt_id in stale:
            del self._attempts[attempt_id]
        return len(stale)
