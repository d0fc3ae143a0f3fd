"""Domain value objects for Lodge identities.

Value objects are immutable and defined by their values, not identity.
"""

import re
from enum import Enum

from pydantic import field_validator

from lodge.domain.value.common import RootValueObject, ValueObject


class Role(str, Enum):
    """Marketplace role of an identity."""

    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class RegistrationMethod(str, Enum):
    """Channel through which the identity was first created."""

    PASSWORD = "password"
    ONE_TIME_CODE = "one-time-code"
    SOCIAL = "social"
    UNIFIED = "unified"


class AccountType(str, Enum):
    """Credential shape of an identity."""

    CODE_ONLY = "code-only"
    PASSWORD_ONLY = "password-only"
    SOCIAL = "social"
    UNIFIED = "unified"


class AuthProvider(str, Enum):
    """Supported social login providers."""

    GOOGLE = "google"


class DeliveryTier(str, Enum):
    """Link of the verification-code delivery chain that issued a code."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    LOCAL = "local"


class LinkingType(str, Enum):
    """How a found identity relates to newly supplied contact details."""

    CODE_TO_UNIFIED = "code-to-unified"
    PASSWORD_TO_UNIFIED = "password-to-unified"
    BLOCKED = "blocked"
    NONE = "none"


class Confidence(str, Enum):
    """Confidence attached to a linking decision."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Handle(RootValueObject[str]):
    """Public handle of an identity.

    Lowercase letters, digits, dots, dashes and underscores, 3-64 characters.
    Generated on creation (e.g. ``user3210``) and unique across identities.
    """

    @field_validator("root")
    @classmethod
    def validate_handle_format(cls, v: str) -> str:
        """Validate handle format."""
        if not re.match(r"^[a-z0-9._-]{3,64}$", v):
            raise ValueError(
                "Handle must be 3-64 characters of lowercase letters, digits, '.', '_' or '-'"
            )
        return v


class OAuthProviderInfo(ValueObject):
    """User info returned from a social login provider."""

    provider: AuthProvider
    provider_user_id: str  # Permanent subject ID at the provider
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    verified: bool = False  # Provider vouches for the email
