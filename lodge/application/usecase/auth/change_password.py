"""Change password use case."""

from pydantic import BaseModel

from lodge.application.usecase.auth.session import (
    SessionResponse,
    load_session_identity,
)
from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import CredentialService, IdentityService, JWTService


class ChangePasswordRequest(BaseModel):
    """Change password request."""

    token: str
    current_password: str
    new_password: str


class ChangePasswordUseCase(BaseUseCase):
    """Use case for replacing the password of the signed-in identity.

    Every token issued before the change stops working, so a fresh one is
    returned.
    """

    def __init__(
        self,
        credential_service: CredentialService,
        identity_service: IdentityService,
        jwt_service: JWTService,
    ) -> None:
        """Initialize change password use case.

        Args:
            credential_service: Password credential service
            identity_service: Identity domain service
            jwt_service: JWT token domain service
        """
        self.credential_service = credential_service
        self.identity_service = identity_service
        self.jwt_service = jwt_service

    async def execute(self, request: ChangePasswordRequest) -> SessionResponse:
        """Change the password and reissue the session.

        Raises:
            JWTError: If the session token is not valid
            InvalidCredentialsError: If the current password is wrong
            ValidationError: If the new password is weak or unchanged
        """
        identity = await load_session_identity(
            request.token, self.jwt_service, self.identity_service
        )
        changed = await self.credential_service.change_password(
            identity.id, request.current_password, request.new_password
        )
        token = self.jwt_service.issue_token(changed)
        return SessionResponse.for_identity(changed, token)
