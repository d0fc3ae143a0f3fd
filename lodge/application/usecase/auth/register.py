"""Register-or-link use case."""

import logfire
from pydantic import BaseModel, Field

from lodge.application.usecase.auth.session import SessionResponse
from lodge.application.usecase.base import BaseUseCase
from lodge.config import Settings
from lodge.domain.error import (
    DuplicateAccountConflictError,
    LinkingBlockedError,
    ValidationError,
)
from lodge.domain.model import Identity
from lodge.domain.service import (
    AccountMergeService,
    CredentialService,
    IdentityFound,
    IdentityResolver,
    IdentityService,
    JWTService,
    LinkAttributes,
    PasswordHasher,
    VerificationCodeService,
    validate_password_strength,
)
from lodge.domain.value import (
    LinkingType,
    Role,
    canonical_phone,
    normalize_email,
    phones_match,
)


class RegisterRequest(BaseModel):
    """Registration request.

    A phone number must come with the verification code sent to it.
    """

    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str
    phone: str | None = None
    verification_code: str | None = None
    role: Role = Role.USER
    college: str | None = None
    course: str | None = None
    year: str | None = None


class RegisterResponse(SessionResponse):
    """Registration response."""

    linked: bool
    linking_type: LinkingType


class RegisterOrLinkUseCase(BaseUseCase):
    """Use case for email+password registration.

    When the email or phone already belongs to a partial identity, that
    identity is upgraded instead of creating a second one.
    """

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        identity_service: IdentityService,
        account_merge_service: AccountMergeService,
        credential_service: CredentialService,
        verification_service: VerificationCodeService,
        password_hasher: PasswordHasher,
        jwt_service: JWTService,
        settings: Settings,
    ) -> None:
        """Initialize register-or-link use case.

        Args:
            identity_resolver: Identity resolver
            identity_service: Identity domain service
            account_merge_service: Account merge executor
            credential_service: Password credential service
            verification_service: Verification-code domain service
            password_hasher: Password hasher
            jwt_service: JWT token domain service
            settings: Application settings
        """
        self.identity_resolver = identity_resolver
        self.identity_service = identity_service
        self.account_merge_service = account_merge_service
        self.credential_service = credential_service
        self.verification_service = verification_service
        self.password_hasher = password_hasher
        self.jwt_service = jwt_service
        self.settings = settings

    async def execute(self, request: RegisterRequest) -> RegisterResponse:
        """Execute register-or-link flow.

        Steps:
        1. Validate input (password strength, role, phone proof)
        2. Resolve any identity holding the email or phone
        3. None: create an email+password identity
        4. Code-only identity holding the proven phone: attach email+password
        5. Email+password identity without a phone: after checking the
           password, attach the proven phone
        6. Anything else: refuse, nothing is written
        7. Issue a session token

        Raises:
            ValidationError: If the input is invalid
            InvalidOrExpiredCodeError: If the phone verification code is rejected
            InvalidCredentialsError: If linking to an account with a different password
            LinkingBlockedError: If the existing account cannot absorb the details
            DuplicateAccountConflictError: If the details belong to other accounts
        """
        if request.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be self-registered")
        validate_password_strength(request.password)

        region = self.settings.verification.default_region
        email = normalize_email(request.email)
        phone = canonical_phone(request.phone, region) if request.phone else None

        with logfire.span("register_or_link", email=email, has_phone=bool(phone)):
            result = await self.identity_resolver.resolve(email=email, phone=phone)

            if not isinstance(result, IdentityFound):
                await self._prove_phone(phone, request.verification_code)
                identity = await self.identity_service.create_password_only(
                    email=email,
                    password_hash=self.password_hasher.hash(request.password),
                    name=request.name.strip(),
                    phone=phone,
                    role=request.role,
                    college=request.college,
                    course=request.course,
                    year=request.year,
                    phone_verified=phone is not None,
                )
                return self._respond(identity, linked=False, linking_type=LinkingType.NONE)

            existing = result.identity
            analysis = result.analysis
            if existing.email and existing.email != email:
                # Found through the phone, which belongs to another email
                raise DuplicateAccountConflictError(
                    "This phone number is already registered to another account",
                    reason="phone-taken",
                )
            if not analysis.can_link:
                logfire.info(
                    "Registration refused, account not linkable",
                    identity_id=str(existing.id),
                    account_type=existing.account_type.value,
                )
                raise LinkingBlockedError(
                    analysis.reason, reason=analysis.linking_type.value
                )

            if analysis.linking_type == LinkingType.CODE_TO_UNIFIED:
                linked = await self._upgrade_code_only(existing, email, phone, request)
            else:
                linked = await self._attach_phone(existing, email, phone, request)

            return self._respond(linked, linked=True, linking_type=analysis.linking_type)

    async def _upgrade_code_only(
        self,
        existing: Identity,
        email: str,
        phone: str | None,
        request: RegisterRequest,
    ) -> Identity:
        # Ownership of a password-less account is proven only through its phone
        if not phones_match(
            existing.phone, phone, self.settings.verification.default_region
        ):
            raise LinkingBlockedError(
                "This email is already registered. Sign in with your phone number "
                "or social account instead",
                reason="ownership-unproven",
            )
        await self._prove_phone(phone, request.verification_code)

        return await self.account_merge_service.link(
            existing,
            LinkAttributes(
                name=request.name.strip(),
                email=email,
                password=request.password,
                phone=phone,
                college=request.college,
                course=request.course,
                year=request.year,
                phone_verified=True,
            ),
        )

    async def _attach_phone(
        self,
        existing: Identity,
        email: str,
        phone: str | None,
        request: RegisterRequest,
    ) -> Identity:
        # Counts towards the lockout like any password login
        await self.credential_service.authenticate(email, request.password)
        await self._prove_phone(phone, request.verification_code)

        return await self.account_merge_service.link(
            existing,
            LinkAttributes(
                name=request.name.strip(),
                phone=phone,
                college=request.college,
                course=request.course,
                year=request.year,
                phone_verified=True,
            ),
        )

    async def _prove_phone(self, phone: str | None, code: str | None) -> None:
        if phone is None:
            return
        if not code:
            raise ValidationError(
                "Enter the verification code sent to your phone to register it"
            )
        await self.verification_service.verify_code(phone, code)

    def _respond(
        self, identity: Identity, linked: bool, linking_type: LinkingType
    ) -> RegisterResponse:
        token = self.jwt_service.issue_token(identity)
        logfire.info(
            "Registration completed",
            identity_id=str(identity.id),
            linked=linked,
            linking_type=linking_type.value,
        )
        return RegisterResponse.for_identity(
            identity, token, linked=linked, linking_type=linking_type
        )
