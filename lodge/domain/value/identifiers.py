"""Strongly typed identifiers for Lodge identity entities.

Using NewType for strong typing prevents mixing up different entity IDs.
"""

from typing import NewType
from uuid import UUID

IdentityId = NewType("IdentityId", UUID)
VerificationAttemptId = NewType("VerificationAttemptId", UUID)
