"""Password login use case."""

from pydantic import BaseModel

from lodge.application.usecase.auth.session import SessionResponse
from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import CredentialService, JWTService


class PasswordLoginRequest(BaseModel):
    """Password login request."""

    email: str
    password: str


class PasswordLoginUseCase(BaseUseCase):
    """Use case for email+password sign-in."""

    def __init__(
        self, credential_service: CredentialService, jwt_service: JWTService
    ) -> None:
        """Initialize password login use case.

        Args:
            credential_service: Password credential service
            jwt_service: JWT token domain service
        """
        self.credential_service = credential_service
        self.jwt_service = jwt_service

    async def execute(self, request: PasswordLoginRequest) -> SessionResponse:
        """Check the credentials and issue a session token.

        Raises:
            ValidationError: If the email is malformed
            InvalidCredentialsError: If the credentials do not match
            AccountLockedError: If the account is locked
        """
        identity = await self.credential_service.authenticate(
            request.email, request.password
        )
        token = self.jwt_service.issue_token(identity)
        return SessionResponse.for_identity(identity, token)
