"""Password credential domain service."""

from datetime import timedelta

import logfire

from lodge.config import AuthSettings
from lodge.domain.error import (
    AccountLockedError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.repository import IdentityRepository
from lodge.domain.service.base import Service
from lodge.domain.service.identity_resolver import IdentityFound, IdentityResolver
from lodge.domain.service.password import PasswordHasher, validate_password_strength
from lodge.domain.value import IdentityId


class CredentialService(Service):
    """Email+password authentication with brute-force lockout."""

    def __init__(
        self,
        identity_repository: IdentityRepository,
        identity_resolver: IdentityResolver,
        password_hasher: PasswordHasher,
        auth_settings: AuthSettings,
    ) -> None:
        """Initialize credential service.

        Args:
            identity_repository: Identity repository
            identity_resolver: Resolver used to find the identity by email
            password_hasher: Password hasher
            auth_settings: Lockout thresholds
        """
        self.identity_repository = identity_repository
        self.identity_resolver = identity_resolver
        self.password_hasher = password_hasher
        self.auth_settings = auth_settings

    async def authenticate(self, email: str, password: str) -> Identity:
        """Check an email/password pair.

        After ``max_failed_logins`` consecutive failures the account is
        locked for ``lockout_minutes``.

        Returns:
            The identity, with its failure counter reset

        Raises:
            InvalidCredentialsError: Unknown email, no password, or mismatch
            AccountLockedError: While the account is locked
        """
        with logfire.span("credential_service.authenticate", email=email):
            result = await self.identity_resolver.resolve(email=email)
            if not isinstance(result, IdentityFound):
                logfire.warn("Login for unknown email", email=email)
                raise InvalidCredentialsError()

            identity = result.identity
            now = utc_now()
            if identity.is_locked(now):
                remaining = (identity.locked_until - now).total_seconds()
                logfire.warn("Login while locked", identity_id=str(identity.id))
                raise AccountLockedError(int(remaining))

            if not identity.is_active or not identity.has_password:
                raise InvalidCredentialsError()

            if self.password_hasher.verify(password, identity.password_hash):
                logged_in = identity.model_copy(
                    update={
                        "failed_login_attempts": 0,
                        "locked_until": None,
                        "last_login": now,
                    }
                )
                logged_in = await self.identity_repository.update(logged_in)
                logfire.info("Password login succeeded", identity_id=str(identity.id))
                return logged_in

            await self._register_failure(identity)

    async def _register_failure(self, identity: Identity) -> None:
        now = utc_now()
        failures = identity.failed_login_attempts + 1
        if identity.locked_until is not None and identity.locked_until <= now:
            # Previous lock expired; start counting afresh
            failures = 1

        if failures >= self.auth_settings.max_failed_logins:
            lockout = timedelta(minutes=self.auth_settings.lockout_minutes)
            await self.identity_repository.update(
                identity.model_copy(
                    update={"failed_login_attempts": 0, "locked_until": now + lockout}
                )
            )
            logfire.warn(
                "Account locked after repeated login failures",
                identity_id=str(identity.id),
            )
            raise AccountLockedError(int(lockout.total_seconds()))

        await self.identity_repository.update(
            identity.model_copy(
                update={"failed_login_attempts": failures, "locked_until": None}
            )
        )
        logfire.warn(
            "Password login failed", identity_id=str(identity.id), failures=failures
        )
        raise InvalidCredentialsError()

    async def change_password(
        self, identity_id: IdentityId, current_password: str, new_password: str
    ) -> Identity:
        """Replace the password of an identity.

        Stamps ``password_changed_at`` so tokens issued earlier stop working.

        Raises:
            NotFoundError: If the identity does not exist
            ValidationError: If there is no password yet, the new one is weak
                or equals the current one
            InvalidCredentialsError: If ``current_password`` is wrong
        """
        with logfire.span(
            "credential_service.change_password", identity_id=str(identity_id)
        ):
            identity = await self.identity_repository.find_by_id(identity_id)
            if not identity:
                raise NotFoundError("Identity", str(identity_id))
            if not identity.has_password:
                raise ValidationError(
                    "This account has no password yet. Complete registration to set one"
                )
            if not self.password_hasher.verify(current_password, identity.password_hash):
                raise InvalidCredentialsError()

            validate_password_strength(new_password)
            if self.password_hasher.verify(new_password, identity.password_hash):
                raise ValidationError("New password must be different from the current password")

            changed = identity.model_copy(
                update={
                    "password_hash": self.password_hasher.hash(new_password),
                    "password_changed_at": utc_now(),
                }
            )
            changed = await self.identity_repository.update(changed)
            logfire.info("Password changed", identity_id=str(identity_id))
            return changed
