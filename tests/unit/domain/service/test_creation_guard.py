"""Unit tests for race-safe identity creation."""

import asyncio

import pytest

from lodge.domain.error import (
    DuplicateAccountConflictError,
    DuplicateKeyError,
    IntegrityFaultError,
)
from lodge.domain.model import Identity
from lodge.domain.service import IdentityResolver, IdentityService, create_or_recover
from lodge.persistence.repository.inmemory import InMemoryIdentityRepository
from tests.conftest import make_identity


class InterleavingIdentityRepository(InMemoryIdentityRepository):
    """Yields to the event loop before each insert so concurrent writers interleave."""

    async def insert(self, identity: Identity) -> Identity:
        await asyncio.sleep(0)
        return await super().insert(identity)


class TestCreateOrRecover:
    """Tests for create_or_recover()."""

    @pytest.mark.asyncio
    async def test_returns_created_entity(self):
        async def create():
            return "created"

        async def never():
            raise AssertionError("not expected")

        assert await create_or_recover(create, never, never) == "created"

    @pytest.mark.asyncio
    async def test_conflict_returns_concurrent_winner(self):
        """On a uniqueness violation the record that won is returned."""

        async def create():
            raise DuplicateKeyError("phone")

        async def recover():
            return "winner"

        async def disambiguate():
            raise AssertionError("not expected")

        assert await create_or_recover(create, recover, disambiguate) == "winner"

    @pytest.mark.asyncio
    async def test_unrelated_collision_retries_disambiguated(self):
        async def create():
            raise DuplicateKeyError("handle")

        async def recover():
            return None

        async def disambiguate():
            return "disambiguated"

        assert await create_or_recover(create, recover, disambiguate) == "disambiguated"

    @pytest.mark.asyncio
    async def test_second_collision_is_integrity_fault(self):
        async def create():
            raise DuplicateKeyError("handle")

        async def recover():
            return None

        async def disambiguate():
            raise DuplicateKeyError("handle")

        with pytest.raises(IntegrityFaultError):
            await create_or_recover(create, recover, disambiguate)


class TestConcurrentIdentityCreation:
    """Concurrent creation through IdentityService."""

    @pytest.mark.asyncio
    async def test_concurrent_code_sign_ins_yield_one_identity(self):
        """Two simultaneous first sign-ins for a phone share one record."""
        # Arrange
        repo = InterleavingIdentityRepository()
        service = IdentityService(repo, IdentityResolver(repo))

        # Act
        first, second = await asyncio.gather(
            service.create_code_only("+919876543210"),
            service.create_code_only("09876543210"),
        )

        # Assert
        assert first.id == second.id
        assert len(await repo.find_all()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_password_registrations_conflict(self, password_hasher):
        """Only one of two racing registrations for an email succeeds."""
        # Arrange
        repo = InterleavingIdentityRepository()
        service = IdentityService(repo, IdentityResolver(repo))

        # Act
        results = await asyncio.gather(
            service.create_password_only("asha@example.com", password_hasher.hash("a")),
            service.create_password_only("ASHA@example.com", password_hasher.hash("b")),
            return_exceptions=True,
        )

        # Assert
        created = [r for r in results if isinstance(r, Identity)]
        conflicts = [r for r in results if isinstance(r, DuplicateAccountConflictError)]
        assert len(created) == 1
        assert len(conflicts) == 1
        assert conflicts[0].reason == "concurrent-registration"

    @pytest.mark.asyncio
    async def test_handle_collision_gets_disambiguated(self):
        """A taken default handle does not block creation."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = IdentityService(repo, IdentityResolver(repo))
        await repo.insert(make_identity(phone="+919999993210", handle="user3210"))

        # Act
        identity = await service.create_code_only("+919876543210")

        # Assert
        assert identity.handle.root.startswith("user3210-")
        assert identity.phone == "+919876543210"
