"""Application layer DI providers."""

from dishka import Scope, provide

from lodge.application.usecase.account import (
    GetAccountStatsUseCase,
    PurgeVerificationAttemptsUseCase,
    ReconcileDuplicatesUseCase,
)
from lodge.application.usecase.auth import (
    ChangePasswordUseCase,
    GetCurrentIdentityUseCase,
    LinkVerifiedPhoneUseCase,
    PasswordLoginUseCase,
    RegisterOrLinkUseCase,
    SendVerificationCodeUseCase,
    SocialLoginUseCase,
    VerifyCodeUseCase,
)
from lodge.config import Settings
from lodge.domain.service import (
    AccountMergeService,
    AuthService,
    CredentialService,
    IdentityResolver,
    IdentityService,
    JWTService,
    PasswordHasher,
    ReconciliationService,
    VerificationCodeService,
)
from lodge.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Verification code use cases
    @provide(scope=Scope.REQUEST)
    def get_send_verification_code_use_case(
        self, verification_service: VerificationCodeService
    ) -> SendVerificationCodeUseCase:
        """Provide send verification code use case."""
        return SendVerificationCodeUseCase(verification_service=verification_service)

    @provide(scope=Scope.REQUEST)
    def get_verify_code_use_case(
        self,
        verification_service: VerificationCodeService,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> VerifyCodeUseCase:
        """Provide verify code use case."""
        return VerifyCodeUseCase(
            verification_service=verification_service,
            identity_resolver=identity_resolver,
            identity_service=identity_service,
            jwt_service=jwt_service,
        )

    # Registration and password use cases
    @provide(scope=Scope.REQUEST)
    def get_register_or_link_use_case(
        self,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        account_merge_service: AccountMergeService,
        credential_service: CredentialService,
        verification_service: VerificationCodeService,
        password_hasher: PasswordHasher,
        jwt_service: JWTService,
        settings: Settings,
    ) -> RegisterOrLinkUseCase:
        """Provide register-or-link use case."""
        return RegisterOrLinkUseCase(
            identity_resolver=identity_resolver,
            identity_service=identity_service,
            account_merge_service=account_merge_service,
            credential_service=credential_service,
            verification_service=verification_service,
            password_hasher=password_hasher,
            jwt_service=jwt_service,
            settings=settings,
        )

    @provide(scope=Scope.REQUEST)
    def get_password_login_use_case(
        self, credential_service: CredentialService, jwt_service: JWTService
    ) -> PasswordLoginUseCase:
        """Provide password login use case."""
        return PasswordLoginUseCase(
            credential_service=credential_service, jwt_service=jwt_service
        )

    @provide(scope=Scope.REQUEST)
    def get_change_password_use_case(
        self,
        credential_service: CredentialService,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> ChangePasswordUseCase:
        """Provide change password use case."""
        return ChangePasswordUseCase(
            credential_service=credential_service,
            identity_service=identity_service,
            jwt_service=jwt_service,
        )

    # Social login
    @provide(scope=Scope.REQUEST)
    def get_social_login_use_case(
        self,
        auth_service: AuthService,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> SocialLoginUseCase:
        """Provide social login use case."""
        return SocialLoginUseCase(
            auth_service=auth_service,
            identity_resolver=identity_resolver,
            identity_service=identity_service,
            jwt_service=jwt_service,
        )

    # Session use cases
    @provide(scope=Scope.REQUEST)
    def get_current_identity_use_case(
        self, jwt_service: JWTService, identity_service: IdentityService
    ) -> GetCurrentIdentityUseCase:
        """Provide get current identity use case."""
        return GetCurrentIdentityUseCase(
            jwt_service=jwt_service, identity_service=identity_service
        )

    @provide(scope=Scope.REQUEST)
    def get_link_verified_phone_use_case(
        self,
        jwt_service: JWTService,
        identity_service: IdentityService,
        identity_resolver: IdentityResolver,
        verification_service: VerificationCodeService,
        account_merge_service: AccountMergeService,
        settings: Settings,
    ) -> LinkVerifiedPhoneUseCase:
        """Provide link verified phone use case."""
        return LinkVerifiedPhoneUseCase(
            jwt_service=jwt_service,
            identity_service=identity_service,
            identity_resolver=identity_resolver,
            verification_service=verification_service,
            account_merge_service=account_merge_service,
            settings=settings,
        )

    # Account maintenance
    @provide(scope=Scope.REQUEST)
    def get_reconcile_duplicates_use_case(
        self, reconciliation_service: ReconciliationService
    ) -> ReconcileDuplicatesUseCase:
        """Provide reconcile duplicates use case."""
        return ReconcileDuplicatesUseCase(reconciliation_service=reconciliation_service)

    @provide(scope=Scope.REQUEST)
    def get_account_stats_use_case(
        self, reconciliation_service: ReconciliationService
    ) -> GetAccountStatsUseCase:
        """Provide account stats use case."""
        return GetAccountStatsUseCase(reconciliation_service=reconciliation_service)

    @provide(scope=Scope.REQUEST)
    def get_purge_verification_attempts_use_case(
        self, verification_service: VerificationCodeService
    ) -> PurgeVerificationAttemptsUseCase:
        """Provide purge verification attempts use case."""
        return PurgeVerificationAttemptsUseCase(verification_service=verification_service)
