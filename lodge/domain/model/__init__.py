"""Domain model entities for Lodge identities."""

from lodge.domain.model.identity import Identity
from lodge.domain.model.verification_attempt import (
    AttemptCode,
    LocallyHashed,
    RemoteValidated,
    VerificationAttempt,
)

__all__ = [
    "Identity",
    "VerificationAttempt",
    "AttemptCode",
    "LocallyHashed",
    "RemoteValidated",
]
