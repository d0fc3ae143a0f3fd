"""Account merge domain service.

Linking only ever fills gaps: a field that already holds a value is never
overwritten, so repeated or concurrent merges converge on the same record.
"""

from typing import Any, Optional

import logfire
from pydantic import BaseModel

from lodge.domain.error import (
    DuplicateAccountConflictError,
    DuplicateKeyError,
    LinkingBlockedError,
    NotFoundError,
    ValidationError,
)
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.repository import IdentityRepository
from lodge.domain.service.base import Service
from lodge.domain.service.linking import analyze_linking
from lodge.domain.service.password import PasswordHasher
from lodge.domain.value import (
    AccountType,
    RegistrationMethod,
    Role,
    canonical_phone,
    normalize_email,
)
from lodge.domain.value.contact import DEFAULT_REGION

# Attributes copied from a merge source onto its target
_TRANSFERABLE_FIELDS = (
    "phone",
    "email",
    "name",
    "avatar_url",
    "college",
    "course",
    "year",
    "bio",
    "google_id",
)


class LinkAttributes(BaseModel):
    """New attributes offered to an existing identity."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    college: Optional[str] = None
    course: Optional[str] = None
    year: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    # Whether the caller proved ownership of the supplied contact
    phone_verified: bool = False
    email_verified: bool = False


class AccountMergeService(Service):
    """Domain service that promotes identities to unified accounts."""

    def __init__(
        self,
        identity_repository: IdentityRepository,
        password_hasher: PasswordHasher,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        """Initialize account merge service.

        Args:
            identity_repository: Identity repository
            password_hasher: Hasher for new passwords
            default_region: Region for phone numbers without a country code
        """
        self.identity_repository = identity_repository
        self.password_hasher = password_hasher
        self.default_region = default_region

    async def link(self, target: Identity, attributes: LinkAttributes) -> Identity:
        """Fill the gaps of ``target`` and promote it to a unified account.

        Args:
            target: Existing identity that survives
            attributes: Newly supplied attributes

        Returns:
            The updated identity

        Raises:
            LinkingBlockedError: If ``target`` is already unified
            ValidationError: If the result would be unified without a password
            DuplicateAccountConflictError: If a supplied email or phone is
                held by another identity
        """
        with logfire.span("account_merge_service.link", identity_id=str(target.id)):
            if target.is_unified:
                raise LinkingBlockedError(
                    "An account with these details already exists. Please log in instead",
                    reason="already-unified",
                )
            if not target.has_password and not attributes.password:
                raise ValidationError("A password is required to complete registration")

            email = normalize_email(attributes.email) if attributes.email else None
            phone = (
                canonical_phone(attributes.phone, self.default_region)
                if attributes.phone
                else None
            )
            password_hash = (
                self.password_hasher.hash(attributes.password)
                if attributes.password and not target.has_password
                else None
            )

            gaps: dict[str, Any] = {
                "name": attributes.name,
                "email": email,
                "phone": phone,
                "password_hash": password_hash,
                "college": attributes.college,
                "course": attributes.course,
                "year": attributes.year,
                "bio": attributes.bio,
                "avatar_url": attributes.avatar_url,
            }

            phone_verified = target.phone_verified or (
                target.phone is None and phone is not None and attributes.phone_verified
            )
            email_verified = target.email_verified or (
                target.email is None and email is not None and attributes.email_verified
            )
            overrides: dict[str, Any] = {
                "registration_method": RegistrationMethod.UNIFIED,
                "account_type": AccountType.UNIFIED,
                "can_link_email": False,
                "profile_completed": True,
                "phone_verified": phone_verified,
                "email_verified": email_verified,
                "last_login": utc_now(),
            }

            linked = await self._fill(target, gaps, overrides)

            logfire.info(
                "Identity linked",
                identity_id=str(linked.id),
                filled=[k for k, v in gaps.items() if v is not None and getattr(target, k) is None],
            )
            return linked

    async def merge_identities(self, source: Identity, target: Identity) -> Identity:
        """Move the distinguishing attributes of ``source`` onto ``target``
        and delete ``source``.

        Args:
            source: Partial identity to retire (e.g. a stale code-only account)
            target: Identity that survives

        Returns:
            The updated target

        Raises:
            DuplicateAccountConflictError: If ``source`` is not linkable
        """
        with logfire.span(
            "account_merge_service.merge_identities",
            source_id=str(source.id),
            target_id=str(target.id),
        ):
            if source.id == target.id:
                return target

            analysis = analyze_linking(source, target.email, target.phone)
            if not analysis.can_link:
                logfire.warn(
                    "Merge refused, source is not linkable",
                    source_id=str(source.id),
                    source_account_type=source.account_type.value,
                )
                raise DuplicateAccountConflictError(
                    "This phone number or email is already registered to another account",
                    reason=analysis.linking_type.value,
                )

            gaps = {
                field: getattr(source, field)
                for field in _TRANSFERABLE_FIELDS
                if getattr(target, field) is None
            }
            overrides: dict[str, Any] = {}
            if "phone" in gaps and gaps["phone"] is not None:
                overrides["phone_verified"] = target.phone_verified or source.phone_verified
            if "email" in gaps and gaps["email"] is not None:
                overrides["email_verified"] = target.email_verified or source.email_verified
            if target.has_password and (target.phone or gaps.get("phone")):
                overrides.update(
                    registration_method=RegistrationMethod.UNIFIED,
                    account_type=AccountType.UNIFIED,
                    can_link_email=False,
                    profile_completed=True,
                )

            # Free the unique phone/email before handing them to the target
            await self.identity_repository.delete(source.id)
            try:
                merged = await self._fill(target, gaps, overrides)
            except DuplicateAccountConflictError:
                await self.identity_repository.insert(source)
                raise

            logfire.info(
                "Identities merged",
                source_id=str(source.id),
                target_id=str(merged.id),
                moved=sorted(k for k, v in gaps.items() if v is not None),
            )
            return merged

    async def _fill(
        self, target: Identity, gaps: dict[str, Any], overrides: dict[str, Any]
    ) -> Identity:
        try:
            updated = await self.identity_repository.fill_missing(
                target.id, gaps, overrides
            )
        except DuplicateKeyError as e:
            logfire.warn(
                "Link target collides with another identity",
                identity_id=str(target.id),
                field=e.field,
            )
            raise DuplicateAccountConflictError(
                f"This {e.field or 'contact'} is already registered to another account",
                reason="duplicate-key",
            ) from e
        if not updated:
            raise NotFoundError("Identity", str(target.id))
        return updated
