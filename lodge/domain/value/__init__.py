"""Domain value objects for Lodge identities."""

from lodge.domain.value.contact import (
    NormalizedPhone,
    canonical_phone,
    normalize_email,
    normalize_phone,
    phones_match,
)
from lodge.domain.value.identifiers import IdentityId, VerificationAttemptId
from lodge.domain.value.types import (
    AccountType,
    AuthProvider,
    Confidence,
    DeliveryTier,
    Handle,
    LinkingType,
    OAuthProviderInfo,
    RegistrationMethod,
    Role,
)

__all__ = [
    # Identifiers
    "IdentityId",
    "VerificationAttemptId",
    # Types
    "AccountType",
    "AuthProvider",
    "Confidence",
    "DeliveryTier",
    "Handle",
    "LinkingType",
    "OAuthProviderInfo",
    "RegistrationMethod",
    "Role",
    # Contact normalization
    "NormalizedPhone",
    "canonical_phone",
    "normalize_email",
    "normalize_phone",
    "phones_match",
]
