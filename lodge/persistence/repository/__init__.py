"""PostgreSQL repository implementations."""

from lodge.persistence.repository.identity import PostgresIdentityRepository
from lodge.persistence.repository.verification_attempt import (
    PostgresVerificationAttemptRepository,
)

__all__ = [
    "PostgresIdentityRepository",
    "PostgresVerificationAttemptRepository",
]
