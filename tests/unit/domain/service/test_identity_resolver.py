"""Unit tests for IdentityResolver."""

import pytest

from lodge.domain.error import IntegrityFaultError, ValidationError
from lodge.domain.service import IdentityFound, IdentityNotFound, IdentityResolver
from lodge.domain.value import AccountType, LinkingType, RegistrationMethod
from lodge.persistence.repository.inmemory import InMemoryIdentityRepository
from tests.conftest import make_identity


class TestResolve:
    """Tests for IdentityResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_returns_not_found_with_normalized_keys(self):
        """Unknown contacts should come back normalized."""
        # Arrange
        resolver = IdentityResolver(InMemoryIdentityRepository())

        # Act
        result = await resolver.resolve(email=" Asha@Example.com", phone="09876543210")

        # Assert
        assert isinstance(result, IdentityNotFound)
        assert result.email == "asha@example.com"
        assert result.phone == "+919876543210"

    @pytest.mark.asyncio
    async def test_finds_identity_stored_in_legacy_phone_format(self):
        """A phone stored without country code should still be found."""
        # Arrange
        repo = InMemoryIdentityRepository()
        legacy = await repo.insert(make_identity(phone="09876543210"))
        resolver = IdentityResolver(repo)

        # Act
        result = await resolver.resolve(phone="+91 98765 43210")

        # Assert
        assert isinstance(result, IdentityFound)
        assert result.identity.id == legacy.id
        assert result.analysis.linking_type == LinkingType.CODE_TO_UNIFIED

    @pytest.mark.asyncio
    async def test_finds_identity_by_email_case_insensitively(self):
        repo = InMemoryIdentityRepository()
        stored = await repo.insert(
            make_identity(
                email="asha@example.com",
                password_hash="hash",
                account_type=AccountType.PASSWORD_ONLY,
                registration_method=RegistrationMethod.PASSWORD,
            )
        )
        resolver = IdentityResolver(repo)

        result = await resolver.resolve(email="ASHA@example.com")

        assert isinstance(result, IdentityFound)
        assert result.identity.id == stored.id

    @pytest.mark.asyncio
    async def test_email_and_phone_on_same_identity(self):
        repo = InMemoryIdentityRepository()
        stored = await repo.insert(
            make_identity(email="asha@example.com", phone="+919876543210")
        )
        resolver = IdentityResolver(repo)

        result = await resolver.resolve(email="asha@example.com", phone="9876543210")

        assert isinstance(result, IdentityFound)
        assert result.identity.id == stored.id

    @pytest.mark.asyncio
    async def test_email_and_phone_on_different_identities_is_integrity_fault(self):
        """Contacts split across two identities should not pick one silently."""
        # Arrange
        repo = InMemoryIdentityRepository()
        await repo.insert(make_identity(email="asha@example.com"))
        await repo.insert(make_identity(phone="+919876543210"))
        resolver = IdentityResolver(repo)

        # Act & Assert
        with pytest.raises(IntegrityFaultError):
            await resolver.resolve(email="asha@example.com", phone="+919876543210")

    @pytest.mark.asyncio
    async def test_phone_variants_on_two_identities_is_integrity_fault(self):
        """Two records holding the same number in different formats is corruption."""
        # Arrange
        repo = InMemoryIdentityRepository()
        await repo.insert(make_identity(phone="09876543210"))
        await repo.insert(make_identity(phone="919876543210"))
        resolver = IdentityResolver(repo)

        # Act & Assert
        with pytest.raises(IntegrityFaultError):
            await resolver.resolve(phone="+919876543210")

    @pytest.mark.asyncio
    async def test_requires_email_or_phone(self):
        resolver = IdentityResolver(InMemoryIdentityRepository())

        with pytest.raises(ValidationError):
            await resolver.resolve()

    @pytest.mark.asyncio
    async def test_rejects_malformed_phone(self):
        resolver = IdentityResolver(InMemoryIdentityRepository())

        with pytest.raises(ValidationError):
            await resolver.resolve(phone="not a phone")
