"""Get current identity use case."""

from datetime import datetime

from pydantic import BaseModel

from lodge.application.usecase.auth.session import load_session_identity
from lodge.application.usecase.base import BaseUseCase
from lodge.domain.model import Identity
from lodge.domain.service import IdentityService, JWTService
from lodge.domain.value import AccountType, Handle, RegistrationMethod, Role


class GetCurrentIdentityRequest(BaseModel):
    """Get current identity request."""

    token: str  # JWT token


class IdentityResponse(BaseModel):
    """Public view of an identity."""

    identity_id: str
    handle: Handle
    name: str | None
    email: str | None
    phone: str | None
    role: Role
    registration_method: RegistrationMethod
    account_type: AccountType
    phone_verified: bool
    email_verified: bool
    has_password: bool
    profile_completed: bool
    avatar_url: str | None
    college: str | None
    course: str | None
    year: str | None
    bio: str | None
    created_at: datetime
    last_login: datetime | None

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityResponse":
        return cls(
            identity_id=str(identity.id),
            handle=identity.handle,
            name=identity.name,
            email=identity.email,
            phone=identity.phone,
            role=identity.role,
            registration_method=identity.registration_method,
            account_type=identity.account_type,
            phone_verified=identity.phone_verified,
            email_verified=identity.email_verified,
            has_password=identity.has_password,
            profile_completed=identity.profile_completed,
            avatar_url=identity.avatar_url,
            college=identity.college,
            course=identity.course,
            year=identity.year,
            bio=identity.bio,
            created_at=identity.created_at,
            last_login=identity.last_login,
        )


class GetCurrentIdentityUseCase(BaseUseCase):
    """Use case for getting the currently authenticated identity."""

    def __init__(
        self, jwt_service: JWTService, identity_service: IdentityService
    ) -> None:
        """Initialize get current identity use case.

        Args:
            jwt_service: JWT token domain service
            identity_service: Identity domain service
        """
        self.jwt_service = jwt_service
        self.identity_service = identity_service

    async def execute(self, request: GetCurrentIdentityRequest) -> IdentityResponse:
        """Load the identity behind a session token.

        Raises:
            JWTError: If token is invalid, expired or stale
            NotFoundError: If identity not found
        """
        identity = await load_session_identity(
            request.token, self.jwt_service, self.identity_service
        )
        return IdentityResponse.from_identity(identity)
