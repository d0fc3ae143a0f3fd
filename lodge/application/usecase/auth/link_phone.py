"""Link verified phone use case."""

import logfire
from pydantic import BaseModel

from lodge.application.usecase.auth.get_current_identity import IdentityResponse
from lodge.application.usecase.auth.session import load_session_identity
from lodge.application.usecase.base import BaseUseCase
from lodge.config import Settings
from lodge.domain.error import ValidationError
from lodge.domain.model import Identity
from lodge.domain.service import (
    AccountMergeService,
    IdentityFound,
    IdentityResolver,
    IdentityService,
    JWTService,
    LinkAttributes,
    VerificationCodeService,
)
from lodge.domain.value import phones_match
from lodge.util.logging import mask_phone


class LinkPhoneRequest(BaseModel):
    """Link phone request."""

    token: str
    phone: str
    code: str


class LinkVerifiedPhoneUseCase(BaseUseCase):
    """Use case for adding a proven phone to the signed-in identity.

    If the phone already belongs to a stale code-only identity, that identity
    is merged into the signed-in one.
    """

    def __init__(
        self,
        jwt_service: JWTService,
        identity_service: IdentityService,
        identity_resolver: IdentityResolver,
        verification_service: VerificationCodeService,
        account_merge_service: AccountMergeService,
        settings: Settings,
    ) -> None:
        """Initialize link verified phone use case.

        Args:
            jwt_service: JWT token domain service
            identity_service: Identity domain service
            identity_resolver: Identity resolver
            verification_service: Verification-code domain service
            account_merge_service: Account merge executor
            settings: Application settings
        """
        self.jwt_service = jwt_service
        self.identity_service = identity_service
        self.identity_resolver = identity_resolver
        self.verification_service = verification_service
        self.account_merge_service = account_merge_service
        self.settings = settings

    async def execute(self, request: LinkPhoneRequest) -> IdentityResponse:
        """Execute phone linking flow.

        Steps:
        1. Load the signed-in identity
        2. Check the code sent to the phone
        3. Phone already on this identity: mark it verified
        4. Phone unused: attach it (promoting password accounts to unified)
        5. Phone on a code-only identity: merge that identity into this one

        Raises:
            JWTError: If the session token is not valid
            ValidationError: If the identity already has another phone
            InvalidOrExpiredCodeError: If the code is rejected
            DuplicateAccountConflictError: If the phone belongs to an account
                that cannot be merged
        """
        identity = await load_session_identity(
            request.token, self.jwt_service, self.identity_service
        )
        region = self.settings.verification.default_region

        if identity.phone and not phones_match(identity.phone, request.phone, region):
            raise ValidationError("Your account already has a different phone number")

        phone = await self.verification_service.verify_code(request.phone, request.code)

        with logfire.span(
            "link_verified_phone",
            identity_id=str(identity.id),
            phone=mask_phone(phone),
        ):
            if identity.phone:
                linked = await self.identity_service.record_login(
                    identity, phone_verified=True
                )
                return IdentityResponse.from_identity(linked)

            result = await self.identity_resolver.resolve(phone=phone)
            if isinstance(result, IdentityFound) and result.identity.id != identity.id:
                linked = await self.account_merge_service.merge_identities(
                    source=result.identity, target=identity
                )
            else:
                linked = await self._attach(identity, phone)

            logfire.info(
                "Phone linked",
                identity_id=str(linked.id),
                account_type=linked.account_type.value,
            )
            return IdentityResponse.from_identity(linked)

    async def _attach(self, identity: Identity, phone: str) -> Identity:
        if identity.has_password and not identity.is_unified:
            return await self.account_merge_service.link(
                identity, LinkAttributes(phone=phone, phone_verified=True)
            )
        return await self.identity_service.attach_phone(identity, phone)
