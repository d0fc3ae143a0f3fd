"""Domain layer DI providers."""

from dishka import Scope, provide

from lodge.config import AuthSettings, Settings, VerificationSettings
from lodge.domain.repository import IdentityRepository, VerificationAttemptRepository
from lodge.domain.service import (
    AccountMergeService,
    AuthService,
    CodeDeliveryStrategy,
    CredentialService,
    IdentityResolver,
    IdentityService,
    JWTService,
    OAuthClient,
    PasswordHasher,
    ReconciliationService,
    VerificationCodeService,
)
from lodge.domain.value import AuthProvider
from lodge.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_auth_service(
        self, oauth_clients: dict[AuthProvider, OAuthClient]
    ) -> AuthService:
        """Provide multi-provider social login domain service.

        Args:
            oauth_clients: Dictionary mapping providers to their OAuth clients

        Returns:
            AuthService configured with all available OAuth clients
        """
        return AuthService(oauth_clients=oauth_clients)

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        """Provide JWT token domain service."""
        return JWTService(auth_settings=auth_settings)

    @provide
    def get_identity_resolver(
        self, identity_repository: IdentityRepository, settings: Settings
    ) -> IdentityResolver:
        """Provide identity resolver."""
        return IdentityResolver(
            identity_repository=identity_repository,
            default_region=settings.verification.default_region,
        )

    @provide
    def get_identity_service(
        self,
        identity_repository: IdentityRepository,
        identity_resolver: IdentityResolver,
        settings: Settings,
    ) -> IdentityService:
        """Provide identity domain service."""
        return IdentityService(
            identity_repository=identity_repository,
            identity_resolver=identity_resolver,
            default_region=settings.verification.default_region,
        )

    @provide
    def get_account_merge_service(
        self,
        identity_repository: IdentityRepository,
        password_hasher: PasswordHasher,
        settings: Settings,
    ) -> AccountMergeService:
        """Provide account merge executor."""
        return AccountMergeService(
            identity_repository=identity_repository,
            password_hasher=password_hasher,
            default_region=settings.verification.default_region,
        )

    @provide
    def get_credential_service(
        self,
        identity_repository: IdentityRepository,
        identity_resolver: IdentityResolver,
        password_hasher: PasswordHasher,
        auth_settings: AuthSettings,
    ) -> CredentialService:
        """Provide password credential service."""
        return CredentialService(
            identity_repository=identity_repository,
            identity_resolver=identity_resolver,
            password_hasher=password_hasher,
            auth_settings=auth_settings,
        )

    @provide
    def get_verification_service(
        self,
        attempt_repository: VerificationAttemptRepository,
        strategies: list[CodeDeliveryStrategy],
        password_hasher: PasswordHasher,
        verification_settings: VerificationSettings,
    ) -> VerificationCodeService:
        """Provide verification-code domain service."""
        return VerificationCodeService(
            attempt_repository=attempt_repository,
            strategies=strategies,
            password_hasher=password_hasher,
            settings=verification_settings,
        )

    @provide
    def get_reconciliation_service(
        self,
        identity_repository: IdentityRepository,
        account_merge_service: AccountMergeService,
        settings: Settings,
    ) -> ReconciliationService:
        """Provide duplicate reconciliation service."""
        return ReconciliationService(
            identity_repository=identity_repository,
            account_merge_service=account_merge_service,
            default_region=settings.verification.default_region,
        )
