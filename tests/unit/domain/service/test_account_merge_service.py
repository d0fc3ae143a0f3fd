"""Unit tests for AccountMergeService."""

import pytest

from lodge.domain.error import (
    DuplicateAccountConflictError,
    DuplicateKeyError,
    LinkingBlockedError,
    ValidationError,
)
from lodge.domain.service import AccountMergeService, LinkAttributes
from lodge.domain.value import AccountType, RegistrationMethod, Role
from lodge.persistence.repository.inmemory import InMemoryIdentityRepository
from tests.conftest import STRONG_PASSWORD, make_identity


def _unified(**fields):
    return make_identity(
        password_hash="hash",
        can_link_email=False,
        account_type=AccountType.UNIFIED,
        registration_method=RegistrationMethod.UNIFIED,
        **fields,
    )


def _password_only(**fields):
    return make_identity(
        password_hash="hash",
        can_link_email=False,
        account_type=AccountType.PASSWORD_ONLY,
        registration_method=RegistrationMethod.PASSWORD,
        **fields,
    )


class TestLink:
    """Tests for AccountMergeService.link()."""

    @pytest.mark.asyncio
    async def test_code_only_identity_becomes_unified(self, password_hasher):
        """Email and password should be attached to the existing record."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        code_only = await repo.insert(
            make_identity(phone="+919876543210", phone_verified=True)
        )

        # Act
        linked = await service.link(
            code_only,
            LinkAttributes(
                name="Asha",
                email="Asha@Example.com",
                password=STRONG_PASSWORD,
                phone="9876543210",
                phone_verified=True,
            ),
        )

        # Assert
        assert linked.id == code_only.id
        assert linked.account_type == AccountType.UNIFIED
        assert linked.registration_method == RegistrationMethod.UNIFIED
        assert linked.email == "asha@example.com"
        assert linked.phone == "+919876543210"
        assert linked.phone_verified
        assert linked.profile_completed
        assert not linked.can_link_email
        assert password_hasher.verify(STRONG_PASSWORD, linked.password_hash)
        assert len(await repo.find_all()) == 1

    @pytest.mark.asyncio
    async def test_never_overwrites_present_fields(self, password_hasher):
        """Gap-fill only: stored name and role survive the link."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        existing = await repo.insert(
            make_identity(
                phone="+919876543210",
                name="Asha Rao",
                college="IIT Bombay",
                role=Role.OWNER,
            )
        )

        # Act
        linked = await service.link(
            existing,
            LinkAttributes(
                name="Someone Else",
                email="asha@example.com",
                password=STRONG_PASSWORD,
                college="Other College",
                course="Design",
                role=Role.USER,
            ),
        )

        # Assert
        assert linked.name == "Asha Rao"
        assert linked.college == "IIT Bombay"
        assert linked.course == "Design"
        assert linked.role == Role.OWNER

    @pytest.mark.asyncio
    async def test_unverified_phone_is_not_marked_verified(self, password_hasher):
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        existing = await repo.insert(_password_only(email="asha@example.com"))

        linked = await service.link(existing, LinkAttributes(phone="+919876543210"))

        assert linked.phone == "+919876543210"
        assert not linked.phone_verified

    @pytest.mark.asyncio
    async def test_password_account_keeps_its_password(self, password_hasher):
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        existing = await repo.insert(_password_only(email="asha@example.com"))

        linked = await service.link(
            existing,
            LinkAttributes(password="N3w!password", phone="+919876543210", phone_verified=True),
        )

        assert linked.password_hash == "hash"
        assert linked.is_unified

    @pytest.mark.asyncio
    async def test_unified_target_is_blocked(self, password_hasher):
        """A unified account must never be re-linked."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        unified = await repo.insert(
            _unified(email="asha@example.com", phone="+919876543210")
        )

        # Act & Assert
        with pytest.raises(LinkingBlockedError) as exc_info:
            await service.link(
                unified, LinkAttributes(email="asha@example.com", password=STRONG_PASSWORD)
            )
        assert exc_info.value.reason == "already-unified"
        assert await repo.find_by_id(unified.id) == unified

    @pytest.mark.asyncio
    async def test_requires_password_for_passwordless_target(self, password_hasher):
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        code_only = await repo.insert(make_identity(phone="+919876543210"))

        with pytest.raises(ValidationError):
            await service.link(code_only, LinkAttributes(email="asha@example.com"))

    @pytest.mark.asyncio
    async def test_email_held_elsewhere_is_conflict(self, password_hasher):
        """A uniqueness violation surfaces as a conflict, not a storage error."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        await repo.insert(_password_only(email="asha@example.com"))
        code_only = await repo.insert(make_identity(phone="+919876543210"))

        # Act & Assert
        with pytest.raises(DuplicateAccountConflictError) as exc_info:
            await service.link(
                code_only,
                LinkAttributes(email="asha@example.com", password=STRONG_PASSWORD),
            )
        assert exc_info.value.reason == "duplicate-key"


class TestMergeIdentities:
    """Tests for AccountMergeService.merge_identities()."""

    @pytest.mark.asyncio
    async def test_code_only_source_folds_into_password_target(self, password_hasher):
        """The source's phone moves over and the source is deleted."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        source = await repo.insert(
            make_identity(phone="+919876543210", phone_verified=True, bio="Hi")
        )
        target = await repo.insert(_password_only(email="asha@example.com"))

        # Act
        merged = await service.merge_identities(source=source, target=target)

        # Assert
        assert merged.id == target.id
        assert merged.phone == "+919876543210"
        assert merged.phone_verified
        assert merged.bio == "Hi"
        assert merged.account_type == AccountType.UNIFIED
        assert await repo.find_by_id(source.id) is None

    @pytest.mark.asyncio
    async def test_merging_identity_into_itself_is_noop(self, password_hasher):
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        identity = await repo.insert(make_identity(phone="+919876543210"))

        result = await service.merge_identities(source=identity, target=identity)

        assert result == identity
        assert await repo.find_by_id(identity.id) == identity

    @pytest.mark.asyncio
    async def test_unified_source_is_refused(self, password_hasher):
        """A complete account is never deleted to feed another."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        source = await repo.insert(
            _unified(email="asha@example.com", phone="+919876543210")
        )
        target = await repo.insert(_password_only(email="other@example.com"))

        # Act & Assert
        with pytest.raises(DuplicateAccountConflictError):
            await service.merge_identities(source=source, target=target)
        assert await repo.find_by_id(source.id) is not None

    @pytest.mark.asyncio
    async def test_source_is_restored_when_fill_collides(self, password_hasher):
        """A merge that cannot complete leaves both identities in place."""

        class CollidingRepository(InMemoryIdentityRepository):
            async def fill_missing(self, identity_id, gaps, overrides):
                raise DuplicateKeyError("phone")

        # Arrange
        repo = CollidingRepository()
        service = AccountMergeService(repo, password_hasher)
        source = await repo.insert(make_identity(phone="+919876543210"))
        target = await repo.insert(_password_only(email="asha@example.com"))

        # Act & Assert
        with pytest.raises(DuplicateAccountConflictError):
            await service.merge_identities(source=source, target=target)
        assert await repo.find_by_id(source.id) == source


class TestRepeatedMerge:
    """Replaying a merge or link converges on the same record."""

    @staticmethod
    def _stable(identity):
        return identity.model_dump(exclude={"updated_at", "last_login"})

    @pytest.mark.asyncio
    async def test_second_merge_with_same_input_changes_nothing(
        self, password_hasher
    ):
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        source = await repo.insert(
            make_identity(phone="+919876543210", phone_verified=True, bio="Hi")
        )
        target = await repo.insert(_password_only(email="asha@example.com"))
        first = await service.merge_identities(source=source, target=target)

        # Act
        second = await service.merge_identities(source=source, target=first)

        # Assert
        assert self._stable(second) == self._stable(first)
        assert await repo.find_all() == [second]

    @pytest.mark.asyncio
    async def test_repeated_gap_fill_changes_nothing(self):
        """Filling the same gaps twice leaves the first result in place."""
        # Arrange
        repo = InMemoryIdentityRepository()
        target = await repo.insert(_password_only(email="asha@example.com"))
        gaps = {"phone": "+919876543210", "name": "Asha", "college": "IIT"}
        overrides = {"account_type": AccountType.UNIFIED}
        first = await repo.fill_missing(target.id, gaps, overrides)

        # Act
        second = await repo.fill_missing(target.id, gaps, overrides)

        # Assert
        assert self._stable(second) == self._stable(first)

    @pytest.mark.asyncio
    async def test_second_link_is_blocked_without_writing(self, password_hasher):
        """Once unified, replaying the same link is refused and nothing moves."""
        # Arrange
        repo = InMemoryIdentityRepository()
        service = AccountMergeService(repo, password_hasher)
        code_only = await repo.insert(
            make_identity(phone="+919876543210", phone_verified=True)
        )
        attributes = LinkAttributes(
            name="Asha",
            email="asha@example.com",
            password=STRONG_PASSWORD,
            phone="+919876543210",
            phone_verified=True,
        )
        linked = await service.link(code_only, attributes)

        # Act & Assert
        with pytest.raises(LinkingBlockedError):
            await service.link(linked, attributes)
        assert await repo.find_by_id(linked.id) == linked
