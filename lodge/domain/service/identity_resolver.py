"""Identity resolver domain service."""

from dataclasses import dataclass

import logfire

from lodge.domain.error import IntegrityFaultError, ValidationError
from lodge.domain.model import Identity
from lodge.domain.repository import IdentityRepository
from lodge.domain.service.base import Service
from lodge.domain.service.linking import LinkingAnalysis, analyze_linking
from lodge.domain.value import normalize_email, normalize_phone
from lodge.domain.value.contact import DEFAULT_REGION
from lodge.util.logging import mask_phone


@dataclass(frozen=True)
class IdentityNotFound:
    """No identity holds the supplied email or phone."""

    email: str | None
    phone: str | None


@dataclass(frozen=True)
class IdentityFound:
    """Exactly one identity holds the supplied email and/or phone."""

    identity: Identity
    analysis: LinkingAnalysis
    email: str | None
    phone: str | None


ResolveResult = IdentityNotFound | IdentityFound


class IdentityResolver(Service):
    """Finds the single identity behind an email and/or phone number.

    Phone lookups cover every stored-format variant, so records written
    before canonicalization are still found.
    """

    def __init__(
        self,
        identity_repository: IdentityRepository,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        """Initialize identity resolver.

        Args:
            identity_repository: Identity repository
            default_region: Region for phone numbers without a country code
        """
        self.identity_repository = identity_repository
        self.default_region = default_region

    async def resolve(
        self, email: str | None = None, phone: str | None = None
    ) -> ResolveResult:
        """Resolve an email and/or phone to at most one identity.

        Args:
            email: Email as supplied by the caller
            phone: Phone as supplied by the caller

        Returns:
            IdentityNotFound, or IdentityFound with a linking analysis

        Raises:
            ValidationError: If neither is supplied or either is malformed
            IntegrityFaultError: If more than one identity matches
        """
        if not email and not phone:
            raise ValidationError("Email or phone number is required")

        normalized_email = normalize_email(email) if email else None
        normalized_phone = normalize_phone(phone, self.default_region) if phone else None
        canonical = normalized_phone.canonical if normalized_phone else None
        variants = normalized_phone.variants if normalized_phone else frozenset()

        with logfire.span(
            "identity_resolver.resolve",
            email=normalized_email,
            phone=mask_phone(canonical),
        ):
            matches = await self.identity_repository.find_by_contact(
                normalized_email, variants
            )
            if not matches:
                logfire.info("No existing identity", email=normalized_email)
                return IdentityNotFound(email=normalized_email, phone=canonical)

            # Email and phone are each unique, so any second match is corruption
            if len({m.id for m in matches}) > 1:
                logfire.error(
                    "Several identities match one contact",
                    identity_ids=[str(m.id) for m in matches],
                    email=normalized_email,
                    phone=mask_phone(canonical),
                )
                raise IntegrityFaultError(
                    "Multiple identities found for one email or phone"
                )

            identity = matches[0]
            analysis = analyze_linking(identity, normalized_email, canonical)

            logfire.info(
                "Existing identity found",
                identity_id=str(identity.id),
                account_type=identity.account_type.value,
                linking_type=analysis.linking_type.value,
                confidence=analysis.confidence.value,
            )
            return IdentityFound(
                identity=identity,
                analysis=analysis,
                email=normalized_email,
                phone=canonical,
            )
