"""Domain services."""

from .account_merge_service import AccountMergeService, LinkAttributes
from .auth_service import AuthService, OAuthClient
from .base import Service
from .code_delivery import (
    CodeDeliveryStrategy,
    DeliveryReceipt,
    LocalFallbackStrategy,
    SendState,
    advance,
)
from .creation_guard import create_or_recover
from .credential_service import CredentialService
from .identity_resolver import IdentityFound, IdentityNotFound, IdentityResolver
from .identity_service import IdentityService
from .jwt_service import JWTService
from .linking import LinkingAnalysis, analyze_linking
from .password import PasswordHasher, validate_password_strength
from .reconciliation_service import (
    AccountStats,
    ReconciliationReport,
    ReconciliationService,
)
from .verification_service import SendResult, VerificationCodeService

__all__ = [
    "AccountMergeService",
    "AccountStats",
    "AuthService",
    "CodeDeliveryStrategy",
    "CredentialService",
    "DeliveryReceipt",
    "IdentityFound",
    "IdentityNotFound",
    "IdentityResolver",
    "IdentityService",
    "JWTService",
    "LinkAttributes",
    "LinkingAnalysis",
    "LocalFallbackStrategy",
    "OAuthClient",
    "PasswordHasher",
    "ReconciliationReport",
    "ReconciliationService",
    "SendResult",
    "SendState",
    "Service",
    "VerificationCodeService",
    "advance",
    "analyze_linking",
    "create_or_recover",
    "validate_password_strength",
]
