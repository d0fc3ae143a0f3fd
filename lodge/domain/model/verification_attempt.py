"""Verification attempt: an outstanding one-time-code challenge for a phone.

References a phone, not an Identity; the identity may not exist yet.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from lodge.domain.model.common import DomainModel, utc_now
from lodge.domain.value import DeliveryTier, VerificationAttemptId
from lodge.domain.value.common import ValueObject


class RemoteValidated(ValueObject):
    """The code is known only to the provider; ask it to check submissions."""

    kind: Literal["remote"] = "remote"


class LocallyHashed(ValueObject):
    """The code was generated here; only its hash is stored."""

    kind: Literal["local"] = "local"
    digest: str


AttemptCode = Annotated[
    Union[RemoteValidated, LocallyHashed], Field(discriminator="kind")
]


class VerificationAttempt(DomainModel):
    """One code-send for a phone.

    Created on every send and kept for the rate-limit window. Marked
    consumed on successful verification, expiry or once the attempt budget
    is used up. Never valid after ``expires_at``.
    """

    id: VerificationAttemptId
    phone: str  # canonical E.164
    code: AttemptCode
    provider: DeliveryTier
    provider_reference: Optional[str] = None
    attempts: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    consumed_at: Optional[datetime] = None

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
