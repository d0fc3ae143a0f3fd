"""Identity domain service."""

import re
import secrets
from typing import Optional
from uuid import uuid4

import logfire

from lodge.domain.error import (
    DuplicateAccountConflictError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.repository import IdentityRepository
from lodge.domain.service.base import Service
from lodge.domain.service.creation_guard import create_or_recover
from lodge.domain.service.identity_resolver import IdentityFound, IdentityResolver
from lodge.domain.value import (
    AccountType,
    Handle,
    IdentityId,
    OAuthProviderInfo,
    RegistrationMethod,
    Role,
    canonical_phone,
    normalize_email,
)
from lodge.domain.value.contact import DEFAULT_REGION
from lodge.util.logging import mask_phone


def handle_for_phone(phone: str) -> Handle:
    """Default handle for a phone-created identity, e.g. ``user3210``."""
    return Handle(f"user{phone[-4:]}")


def handle_for_email(email: str) -> Handle:
    """Default handle derived from the local part of an email."""
    local = re.sub(r"[^a-z0-9._-]", "", email.split("@", 1)[0].lower())[:48]
    if len(local) < 3:
        local = f"user{local}"
    return Handle(local)


def disambiguate_handle(handle: Handle) -> Handle:
    """Append a random suffix to a handle."""
    return Handle(f"{handle.root[:56]}-{secrets.token_hex(3)}")


class IdentityService(Service):
    """Domain service for creating and loading identities.

    Creation goes through ``create_or_recover`` so two concurrent requests
    for the same person end up with one record.
    """

    def __init__(
        self,
        identity_repository: IdentityRepository,
        identity_resolver: IdentityResolver,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        """Initialize identity service.

        Args:
            identity_repository: Identity repository
            identity_resolver: Resolver used to recover from creation races
            default_region: Region for phone numbers without a country code
        """
        self.identity_repository = identity_repository
        self.identity_resolver = identity_resolver
        self.default_region = default_region

    async def get_by_id(self, identity_id: IdentityId) -> Identity:
        """Get identity by ID.

        Raises:
            NotFoundError: If identity not found
        """
        with logfire.span("identity_service.get_by_id", identity_id=str(identity_id)):
            identity = await self.identity_repository.find_by_id(identity_id)
            if not identity:
                logfire.warn("Identity not found", identity_id=str(identity_id))
                raise NotFoundError("Identity", str(identity_id))
            return identity

    async def find_by_google_id(self, google_id: str) -> Optional[Identity]:
        """Find identity by Google subject ID."""
        return await self.identity_repository.find_by_google_id(google_id)

    async def create_code_only(self, phone: str) -> Identity:
        """Create the identity of someone who just proved a phone number.

        If a concurrent request created it first, that record is returned.
        """
        canonical = canonical_phone(phone, self.default_region)

        def build(handle: Handle) -> Identity:
            now = utc_now()
            return Identity(
                id=IdentityId(uuid4()),
                handle=handle,
                phone=canonical,
                registration_method=RegistrationMethod.ONE_TIME_CODE,
                account_type=AccountType.CODE_ONLY,
                phone_verified=True,
                can_link_email=True,
                created_at=now,
                updated_at=now,
                last_login=now,
            )

        with logfire.span(
            "identity_service.create_code_only", phone=mask_phone(canonical)
        ):
            base = handle_for_phone(canonical)
            identity = await create_or_recover(
                create=lambda: self.identity_repository.insert(build(base)),
                recover=lambda: self._recover(phone=canonical),
                disambiguate=lambda: self.identity_repository.insert(
                    build(disambiguate_handle(base))
                ),
                entity="identity",
            )
            logfire.info("Code-only identity ready", identity_id=str(identity.id))
            return identity

    async def create_password_only(
        self,
        email: str,
        password_hash: str,
        name: str | None = None,
        phone: str | None = None,
        role: Role = Role.USER,
        college: str | None = None,
        course: str | None = None,
        year: str | None = None,
        phone_verified: bool = False,
    ) -> Identity:
        """Create an email+password identity.

        With a proven phone the identity starts out unified.

        A concurrent registration for the same email or phone is reported as
        a conflict, never returned: the caller has not proven ownership.

        Raises:
            DuplicateAccountConflictError: If the email or phone was taken
        """
        normalized_email = normalize_email(email)
        canonical = canonical_phone(phone, self.default_region) if phone else None
        proven_phone = phone_verified and canonical is not None

        def build(handle: Handle) -> Identity:
            now = utc_now()
            return Identity(
                id=IdentityId(uuid4()),
                handle=handle,
                name=name,
                email=normalized_email,
                phone=canonical,
                password_hash=password_hash,
                role=role,
                registration_method=RegistrationMethod.PASSWORD,
                account_type=(
                    AccountType.UNIFIED if proven_phone else AccountType.PASSWORD_ONLY
                ),
                phone_verified=proven_phone,
                can_link_email=False,
                profile_completed=bool(name),
                college=college,
                course=course,
                year=year,
                created_at=now,
                updated_at=now,
                last_login=now,
            )

        async def recover() -> Optional[Identity]:
            if await self._recover(email=normalized_email, phone=canonical):
                raise DuplicateAccountConflictError(
                    "An account with this email or phone number already exists",
                    reason="concurrent-registration",
                )
            return None

        with logfire.span("identity_service.create_password_only", email=normalized_email):
            base = handle_for_email(normalized_email)
            identity = await create_or_recover(
                create=lambda: self.identity_repository.insert(build(base)),
                recover=recover,
                disambiguate=lambda: self.identity_repository.insert(
                    build(disambiguate_handle(base))
                ),
                entity="identity",
            )
            logfire.info("Password identity created", identity_id=str(identity.id))
            return identity

    async def create_social(self, info: OAuthProviderInfo) -> Identity:
        """Create an identity from a social login profile."""
        email = normalize_email(info.email) if info.email else None
        if not email:
            raise ValidationError("Your social account did not share an email address")

        def build(handle: Handle) -> Identity:
            now = utc_now()
            return Identity(
                id=IdentityId(uuid4()),
                handle=handle,
                name=info.display_name,
                email=email,
                avatar_url=info.avatar_url,
                google_id=info.provider_user_id,
                registration_method=RegistrationMethod.SOCIAL,
                account_type=AccountType.SOCIAL,
                email_verified=info.verified,
                can_link_email=True,
                created_at=now,
                updated_at=now,
                last_login=now,
            )

        async def recover() -> Optional[Identity]:
            winner = await self.identity_repository.find_by_google_id(
                info.provider_user_id
            )
            return winner or await self._recover(email=email)

        with logfire.span(
            "identity_service.create_social", provider=info.provider.value
        ):
            base = handle_for_email(email)
            identity = await create_or_recover(
                create=lambda: self.identity_repository.insert(build(base)),
                recover=recover,
                disambiguate=lambda: self.identity_repository.insert(
                    build(disambiguate_handle(base))
                ),
                entity="identity",
            )
            logfire.info("Social identity ready", identity_id=str(identity.id))
            return identity

    async def attach_google_id(self, identity: Identity, info: OAuthProviderInfo) -> Identity:
        """Attach a Google subject to an identity found by email."""
        updated = await self.identity_repository.fill_missing(
            identity.id,
            gaps={
                "google_id": info.provider_user_id,
                "avatar_url": info.avatar_url,
                "name": info.display_name,
            },
            overrides={
                "email_verified": identity.email_verified or info.verified,
                "last_login": utc_now(),
            },
        )
        if not updated:
            raise NotFoundError("Identity", str(identity.id))
        logfire.info("Google account attached", identity_id=str(identity.id))
        return updated

    async def attach_phone(self, identity: Identity, phone: str) -> Identity:
        """Attach a proven phone to an identity that has none.

        Raises:
            DuplicateAccountConflictError: If the phone was taken meanwhile
        """
        canonical = canonical_phone(phone, self.default_region)
        try:
            updated = await self.identity_repository.fill_missing(
                identity.id,
                gaps={"phone": canonical},
                overrides={"phone_verified": True},
            )
        except DuplicateKeyError as e:
            raise DuplicateAccountConflictError(
                "This phone number is already registered to another account",
                reason="duplicate-key",
            ) from e
        if not updated:
            raise NotFoundError("Identity", str(identity.id))
        logfire.info(
            "Phone attached", identity_id=str(identity.id), phone=mask_phone(canonical)
        )
        return updated

    async def record_login(
        self, identity: Identity, phone_verified: bool = False
    ) -> Identity:
        """Stamp a successful login.

        Args:
            identity: Identity that signed in
            phone_verified: Whether the login proved the identity's phone
        """
        overrides: dict = {"last_login": utc_now()}
        if phone_verified:
            overrides["phone_verified"] = True
        updated = await self.identity_repository.fill_missing(
            identity.id, gaps={}, overrides=overrides
        )
        if not updated:
            raise NotFoundError("Identity", str(identity.id))
        return updated

    async def _recover(
        self, email: str | None = None, phone: str | None = None
    ) -> Optional[Identity]:
        result = await self.identity_resolver.resolve(email=email, phone=phone)
        return result.identity if isinstance(result, IdentityFound) else None
