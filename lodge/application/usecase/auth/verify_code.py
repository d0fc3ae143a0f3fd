"""Verify code use case."""

import logfire
from pydantic import BaseModel

from lodge.application.usecase.auth.session import SessionResponse
from lodge.application.usecase.base import BaseUseCase
from lodge.domain.error import ValidationError
from lodge.domain.service import (
    IdentityFound,
    IdentityResolver,
    IdentityService,
    JWTService,
    VerificationCodeService,
)
from lodge.util.logging import mask_phone


class VerifyCodeRequest(BaseModel):
    """Verify code request."""

    phone: str
    code: str


class VerifyCodeResponse(SessionResponse):
    """Verify code response."""

    is_new_identity: bool


class VerifyCodeUseCase(BaseUseCase):
    """Use case for signing in with a one-time code.

    A proven phone with no identity gets a new code-only identity; a known
    phone signs in to the identity that holds it.
    """

    def __init__(
        self,
        verification_service: VerificationCodeService,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> None:
        """Initialize verify code use case.

        Args:
            verification_service: Verification-code domain service
            identity_resolver: Identity resolver
            identity_service: Identity domain service
            jwt_service: JWT token domain service
        """
        self.verification_service = verification_service
        self.identity_resolver = identity_resolver
        self.identity_service = identity_service
        self.jwt_service = jwt_service

    async def execute(self, request: VerifyCodeRequest) -> VerifyCodeResponse:
        """Execute code sign-in flow.

        Steps:
        1. Check the code (consumes the attempt on success)
        2. Resolve the identity holding the phone
        3. If none: create a code-only identity (race-safe)
        4. If found: stamp the login and mark the phone verified
        5. Issue a session token

        Raises:
            ValidationError: If the input is malformed or the account is inactive
            InvalidOrExpiredCodeError: If the code is rejected
        """
        phone = await self.verification_service.verify_code(request.phone, request.code)

        with logfire.span("verify_code_login", phone=mask_phone(phone)):
            result = await self.identity_resolver.resolve(phone=phone)

            if isinstance(result, IdentityFound):
                if not result.identity.is_active:
                    raise ValidationError("This account has been deactivated")
                identity = await self.identity_service.record_login(
                    result.identity, phone_verified=True
                )
                is_new = False
                logfire.info("Existing identity signed in by code", identity_id=str(identity.id))
            else:
                identity = await self.identity_service.create_code_only(phone)
                is_new = True

            token = self.jwt_service.issue_token(identity)
            return VerifyCodeResponse.for_identity(
                identity, token, is_new_identity=is_new
            )
