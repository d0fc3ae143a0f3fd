"""In-memory repository implementations for testing."""

from .identity import InMemoryIdentityRepository
from .verification_attempt import InMemoryVerificationAttemptRepository

__all__ = [
    "InMemoryIdentityRepository",
    "InMemoryVerificationAttemptRepository",
]
