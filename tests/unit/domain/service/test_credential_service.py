"""Unit tests for CredentialService."""

from datetime import timedelta

import pytest

from lodge.config import AuthSettings
from lodge.domain.error import (
    AccountLockedError,
    InvalidCredentialsError,
    ValidationError,
)
from lodge.domain.model.common import utc_now
from lodge.domain.service import CredentialService, IdentityResolver
from lodge.domain.value import AccountType, RegistrationMethod
from lodge.persistence.repository.inmemory import InMemoryIdentityRepository
from tests.conftest import STRONG_PASSWORD, make_identity


async def setup_account(password_hasher, **fields):
    repo = InMemoryIdentityRepository()
    service = CredentialService(
        identity_repository=repo,
        identity_resolver=IdentityResolver(repo),
        password_hasher=password_hasher,
        auth_settings=AuthSettings(max_failed_logins=5, lockout_minutes=30),
    )
    identity = await repo.insert(
        make_identity(
            email="asha@example.com",
            password_hash=password_hasher.hash(STRONG_PASSWORD),
            can_link_email=False,
            account_type=AccountType.PASSWORD_ONLY,
            registration_method=RegistrationMethod.PASSWORD,
            **fields,
        )
    )
    return service, repo, identity


class TestAuthenticate:
    """Tests for CredentialService.authenticate()."""

    @pytest.mark.asyncio
    async def test_correct_password_signs_in(self, password_hasher):
        # Arrange
        service, _, identity = await setup_account(
            password_hasher, failed_login_attempts=2
        )

        # Act
        result = await service.authenticate("Asha@Example.com", STRONG_PASSWORD)

        # Assert
        assert result.id == identity.id
        assert result.failed_login_attempts == 0
        assert result.last_login is not None

    @pytest.mark.asyncio
    async def test_wrong_password_counts_failure(self, password_hasher):
        service, repo, identity = await setup_account(password_hasher)

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("asha@example.com", "Wr0ng!pass")

        stored = await repo.find_by_id(identity.id)
        assert stored.failed_login_attempts == 1

    @pytest.mark.asyncio
    async def test_unknown_email_is_invalid_credentials(self, password_hasher):
        service, _, _ = await setup_account(password_hasher)

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("nobody@example.com", STRONG_PASSWORD)

    @pytest.mark.asyncio
    async def test_fifth_failure_locks_account(self, password_hasher):
        """Repeated failures lock the account, even against the right password."""
        # Arrange
        service, repo, identity = await setup_account(password_hasher)
        for _ in range(4):
            with pytest.raises(InvalidCredentialsError):
                await service.authenticate("asha@example.com", "Wr0ng!pass")

        # Act
        with pytest.raises(AccountLockedError) as exc_info:
            await service.authenticate("asha@example.com", "Wr0ng!pass")

        # Assert
        assert exc_info.value.retry_after_seconds == 30 * 60
        stored = await repo.find_by_id(identity.id)
        assert stored.is_locked(utc_now())
        with pytest.raises(AccountLockedError):
            await service.authenticate("asha@example.com", STRONG_PASSWORD)

    @pytest.mark.asyncio
    async def test_expired_lock_allows_sign_in(self, password_hasher):
        service, _, identity = await setup_account(
            password_hasher, locked_until=utc_now() - timedelta(minutes=1)
        )

        result = await service.authenticate("asha@example.com", STRONG_PASSWORD)

        assert result.id == identity.id
        assert result.locked_until is None

    @pytest.mark.asyncio
    async def test_inactive_account_cannot_sign_in(self, password_hasher):
        service, _, _ = await setup_account(password_hasher, is_active=False)

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("asha@example.com", STRONG_PASSWORD)


class TestChangePassword:
    """Tests for CredentialService.change_password()."""

    @pytest.mark.asyncio
    async def test_replaces_password_and_stamps_change(self, password_hasher):
        # Arrange
        service, _, identity = await setup_account(password_hasher)

        # Act
        changed = await service.change_password(
            identity.id, STRONG_PASSWORD, "N3w!password"
        )

        # Assert
        assert password_hasher.verify("N3w!password", changed.password_hash)
        assert changed.password_changed_at is not None
        result = await service.authenticate("asha@example.com", "N3w!password")
        assert result.id == identity.id

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, password_hasher):
        service, _, identity = await setup_account(password_hasher)

        with pytest.raises(InvalidCredentialsError):
            await service.change_password(identity.id, "Wr0ng!pass", "N3w!password")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_password", ["short", "alllowercase1!", STRONG_PASSWORD])
    async def test_rejects_weak_or_unchanged_password(self, password_hasher, new_password):
        service, _, identity = await setup_account(password_hasher)

        with pytest.raises(ValidationError):
            await service.change_password(identity.id, STRONG_PASSWORD, new_password)

    @pytest.mark.asyncio
    async def test_passwordless_account_cannot_change(self, password_hasher):
        repo = InMemoryIdentityRepository()
        service = CredentialService(
            repo, IdentityResolver(repo), password_hasher, AuthSettings()
        )
        code_only = await repo.insert(make_identity(phone="+919876543210"))

        with pytest.raises(ValidationError):
            await service.change_password(code_only.id, "anything", "N3w!password")
