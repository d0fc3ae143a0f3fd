"""Repository interfaces for the Lodge identity domain.

Interfaces live in the domain layer; implementations live in persistence.
"""

from lodge.domain.repository.identity import IdentityRepository
from lodge.domain.repository.verification_attempt import VerificationAttemptRepository

__all__ = [
    "IdentityRepository",
    "VerificationAttemptRepository",
]
