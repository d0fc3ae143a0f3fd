"""Identity aggregate root.

One Identity is one physical person. A person may sign in with
email+password, with a one-time code sent to their phone, or with Google;
all three channels resolve to the same record.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from lodge.domain.model.common import DomainModel, utc_now
from lodge.domain.value import (
    AccountType,
    Handle,
    IdentityId,
    RegistrationMethod,
    Role,
)


class Identity(DomainModel):
    """Identity aggregate root.

    ``email`` is stored lowercased and trimmed, ``phone`` in canonical E.164
    form. Both are globally unique when present, as are ``handle`` and
    ``google_id``.
    """

    id: IdentityId
    handle: Handle
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password_hash: Optional[str] = None
    role: Role = Role.USER

    registration_method: RegistrationMethod
    account_type: AccountType
    phone_verified: bool = False
    email_verified: bool = False
    can_link_email: bool = True
    profile_completed: bool = False

    # Profile
    avatar_url: Optional[str] = None
    college: Optional[str] = None
    course: Optional[str] = None
    year: Optional[str] = None
    bio: Optional[str] = None

    # Social login subject
    google_id: Optional[str] = None

    # Password security
    failed_login_attempts: int = Field(default=0, ge=0)
    locked_until: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None

    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None

    @model_validator(mode="after")
    def check_contact_present(self) -> "Identity":
        """At least one of email/phone is present."""
        if not self.email and not self.phone:
            raise ValueError("Identity requires an email or a phone number")
        return self

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_unified(self) -> bool:
        return self.account_type == AccountType.UNIFIED

    def is_locked(self, now: datetime) -> bool:
        """Whether password login is currently locked."""
        return self.locked_until is not None and self.locked_until > now
