"""JWT session token domain service."""

import math
from datetime import datetime, timezone

import logfire

from lodge.config import AuthSettings
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.util.jwt import JWTError, TokenPayload, create_token, verify_token

from .base import Service


class JWTService(Service):
    """Domain service for session token operations."""

    def __init__(self, auth_settings: AuthSettings) -> None:
        """Initialize JWT service.

        Args:
            auth_settings: Authentication settings
        """
        self.auth_settings = auth_settings

    def issue_token(self, identity: Identity) -> str:
        """Mint a session token for a resolved identity.

        Args:
            identity: Identity that authenticated

        Returns:
            JWT token string
        """
        with logfire.span("jwt_service.issue_token", identity_id=str(identity.id)):
            # Never issued before the password change it follows
            issued_at = utc_now()
            if identity.password_changed_at:
                issued_at = max(
                    issued_at, _whole_second_after(identity.password_changed_at)
                )
            token = create_token(
                identity_id=str(identity.id),
                email=identity.email,
                phone=identity.phone,
                role=identity.role.value,
                settings=self.auth_settings,
                issued_at=issued_at,
            )
            logfire.info("Session token issued", identity_id=str(identity.id))
            return token

    def verify_token(self, token: str) -> TokenPayload:
        """Verify JWT token and extract payload.

        Raises:
            JWTError: If token is invalid or expired
        """
        with logfire.span("jwt_service.verify_token"):
            try:
                payload = verify_token(token, self.auth_settings)
            except JWTError as e:
                logfire.info("Session token rejected", error=str(e))
                raise
            return payload

    def ensure_fresh(self, payload: TokenPayload, identity: Identity) -> None:
        """Reject tokens minted before the identity's last password change.

        ``iat`` has whole-second precision, so the change time is rounded up:
        a token minted earlier in the same second is stale too.

        Raises:
            JWTError: If the token predates the password change
        """
        if identity.password_changed_at is None:
            return
        changed_at = _whole_second_after(identity.password_changed_at)
        if payload.iat < changed_at:
            logfire.info(
                "Session token predates password change",
                identity_id=str(identity.id),
            )
            raise JWTError("Token was issued before the last password change")


def _whole_second_after(moment: datetime) -> datetime:
    return datetime.fromtimestamp(math.ceil(moment.timestamp()), tz=timezone.utc)
