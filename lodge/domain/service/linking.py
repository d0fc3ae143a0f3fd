"""Linking decision engine.

Classifies an existing identity against newly supplied contact details.
Rules are evaluated in order and the first match wins:

1. No password and created by one-time code, or flagged code-only/linkable:
   linkable with high confidence; the new email+password will be attached.
2. Email+password but no phone, and a phone is supplied: linkable with
   medium confidence; the phone will be attached.
3. Anything else, notably every unified identity: blocked.

The result is advisory. Callers decide whether to merge or to refuse.
"""

from dataclasses import dataclass

from lodge.domain.model import Identity
from lodge.domain.value import AccountType, Confidence, LinkingType, RegistrationMethod


@dataclass(frozen=True)
class LinkingAnalysis:
    """Outcome of classifying an identity for linking."""

    can_link: bool
    should_link: bool
    linking_type: LinkingType
    confidence: Confidence
    reason: str


NOT_FOUND_ANALYSIS = LinkingAnalysis(
    can_link=False,
    should_link=False,
    linking_type=LinkingType.NONE,
    confidence=Confidence.LOW,
    reason="No existing identity",
)


def _is_code_only(identity: Identity) -> bool:
    if identity.is_unified or identity.has_password:
        return False
    return (
        identity.registration_method == RegistrationMethod.ONE_TIME_CODE
        or identity.account_type == AccountType.CODE_ONLY
        or identity.can_link_email
        or (
            identity.phone is not None
            and identity.email is None
            and identity.phone_verified
            and not identity.profile_completed
        )
    )


def analyze_linking(
    identity: Identity, email: str | None, phone: str | None
) -> LinkingAnalysis:
    """Classify ``identity`` against a newly supplied email and/or phone.

    Args:
        identity: The existing identity
        email: Newly supplied (normalized) email, if any
        phone: Newly supplied (canonical) phone, if any

    Returns:
        Linking analysis
    """
    if _is_code_only(identity):
        return LinkingAnalysis(
            can_link=True,
            should_link=True,
            linking_type=LinkingType.CODE_TO_UNIFIED,
            confidence=Confidence.HIGH,
            reason="Code-only account can be upgraded to a unified account with email and password",
        )

    if (
        not identity.is_unified
        and identity.email
        and identity.has_password
        and not identity.phone
        and phone
    ):
        return LinkingAnalysis(
            can_link=True,
            should_link=True,
            linking_type=LinkingType.PASSWORD_TO_UNIFIED,
            confidence=Confidence.MEDIUM,
            reason="Email account can be enhanced with a phone number",
        )

    return LinkingAnalysis(
        can_link=False,
        should_link=False,
        linking_type=LinkingType.BLOCKED,
        confidence=Confidence.HIGH,
        reason="Account already has a complete profile. Please log in instead",
    )
