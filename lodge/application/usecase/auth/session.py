"""Session response shared by the sign-in use cases."""

from uuid import UUID

from pydantic import BaseModel

from lodge.domain.model import Identity
from lodge.domain.service import IdentityService, JWTService
from lodge.domain.value import AccountType, Handle, IdentityId, Role
from lodge.util.jwt import JWTError


class SessionResponse(BaseModel):
    """A freshly issued session for an identity."""

    token: str
    identity_id: str
    handle: Handle
    role: Role
    account_type: AccountType

    @classmethod
    def for_identity(cls, identity: Identity, token: str, **extra) -> "SessionResponse":
        return cls(
            token=token,
            identity_id=str(identity.id),
            handle=identity.handle,
            role=identity.role,
            account_type=identity.account_type,
            **extra,
        )


async def load_session_identity(
    token: str, jwt_service: JWTService, identity_service: IdentityService
) -> Identity:
    """Resolve a session token to its identity.

    Raises:
        JWTError: If the token is invalid, expired or predates a password change
        NotFoundError: If the identity no longer exists
    """
    payload = jwt_service.verify_token(token)
    identity = await identity_service.get_by_id(IdentityId(UUID(payload.identity_id)))
    jwt_service.ensure_fresh(payload, identity)
    if not identity.is_active:
        raise JWTError("Account is deactivated")
    return identity
