"""Social login use case."""

import logfire
from pydantic import BaseModel

from lodge.application.usecase.auth.session import SessionResponse
from lodge.application.usecase.base import BaseUseCase
from lodge.domain.error import DuplicateAccountConflictError, ValidationError
from lodge.domain.model import Identity
from lodge.domain.service import (
    AuthService,
    IdentityFound,
    IdentityResolver,
    IdentityService,
    JWTService,
)
from lodge.domain.value import AuthProvider, normalize_email
from lodge.domain.value.types import OAuthProviderInfo


class SocialLoginRequest(BaseModel):
    """Social login request from the OAuth callback."""

    provider: AuthProvider
    code: str  # OAuth authorization code
    state: str  # State parameter for session verification


class SocialLoginResponse(SessionResponse):
    """Social login response."""

    is_new_identity: bool


class SocialLoginUseCase(BaseUseCase):
    """Use case for signing in through a social provider."""

    def __init__(
        self,
        auth_service: AuthService,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> None:
        """Initialize social login use case.

        Args:
            auth_service: Authentication domain service (handles all providers)
            identity_resolver: Identity resolver
            identity_service: Identity domain service
            jwt_service: JWT token domain service
        """
        self.auth_service = auth_service
        self.identity_resolver = identity_resolver
        self.identity_service = identity_service
        self.jwt_service = jwt_service

    async def execute(self, request: SocialLoginRequest) -> SocialLoginResponse:
        """Execute social login flow.

        Steps:
        1. Complete OAuth flow with provider and get user info
        2. Known provider subject: sign in
        3. Known, provider-verified email: attach the subject and sign in
        4. Otherwise: create a social identity
        5. Generate JWT token

        Raises:
            OAuthError: If the provider exchange fails
            ValidationError: If the provider shared no email
            DuplicateAccountConflictError: If the email belongs to an account
                that cannot be claimed through this provider
        """
        provider_info = await self.auth_service.complete_login(
            request.provider, request.code, request.state
        )
        logfire.info(
            "OAuth completed",
            provider=provider_info.provider.value,
            provider_user_id=provider_info.provider_user_id,
        )

        with logfire.span("social_login", provider=provider_info.provider.value):
            existing = await self.identity_service.find_by_google_id(
                provider_info.provider_user_id
            )
            if existing:
                identity = await self._sign_in(existing)
                is_new = False
            else:
                identity, is_new = await self._claim_or_create(provider_info)

            token = self.jwt_service.issue_token(identity)
            return SocialLoginResponse.for_identity(
                identity, token, is_new_identity=is_new
            )

    async def _claim_or_create(
        self, provider_info: OAuthProviderInfo
    ) -> tuple[Identity, bool]:
        if not provider_info.email:
            raise ValidationError("Your social account did not share an email address")

        email = normalize_email(provider_info.email)
        result = await self.identity_resolver.resolve(email=email)
        if not isinstance(result, IdentityFound):
            return await self.identity_service.create_social(provider_info), True

        found = result.identity
        if not provider_info.verified:
            raise DuplicateAccountConflictError(
                "An account with this email already exists. Sign in with your password instead",
                reason="email-unverified-at-provider",
            )
        if found.google_id and found.google_id != provider_info.provider_user_id:
            raise DuplicateAccountConflictError(
                "This email is linked to a different Google account",
                reason="provider-mismatch",
            )
        await self._ensure_active(found)
        return await self.identity_service.attach_google_id(found, provider_info), False

    async def _sign_in(self, identity: Identity) -> Identity:
        await self._ensure_active(identity)
        return await self.identity_service.record_login(identity)

    async def _ensure_active(self, identity: Identity) -> None:
        if not identity.is_active:
            raise ValidationError("This account has been deactivated")
