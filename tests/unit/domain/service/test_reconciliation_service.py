"""Unit tests for ReconciliationService."""

from datetime import timedelta

import pytest

from lodge.domain.model.common import utc_now
from lodge.domain.service import AccountMergeService, ReconciliationService
from lodge.domain.value import AccountType, RegistrationMethod
from lodge.persistence.repository.inmemory import InMemoryIdentityRepository
from tests.conftest import make_identity


async def seed(repo):
    """Legacy data: one person split across records with differently formatted phones."""
    now = utc_now()
    unified = await repo.insert(
        make_identity(
            email="asha@example.com",
            phone="+919876543210",
            password_hash="hash",
            can_link_email=False,
            account_type=AccountType.UNIFIED,
            registration_method=RegistrationMethod.UNIFIED,
            created_at=now - timedelta(days=30),
        )
    )
    stale_code_only = await repo.insert(
        make_identity(phone="09876543210", name="Asha", created_at=now - timedelta(days=10))
    )
    second_password = await repo.insert(
        make_identity(
            email="other@example.com",
            phone="919876543210",
            password_hash="hash",
            can_link_email=False,
            account_type=AccountType.PASSWORD_ONLY,
            registration_method=RegistrationMethod.PASSWORD,
            created_at=now - timedelta(days=5),
        )
    )
    loner = await repo.insert(
        make_identity(phone="08888877777", created_at=now - timedelta(days=1))
    )
    return unified, stale_code_only, second_password, loner


def build_service(repo, password_hasher):
    return ReconciliationService(repo, AccountMergeService(repo, password_hasher))


class TestFindDuplicateGroups:
    """Tests for ReconciliationService.find_duplicate_groups()."""

    @pytest.mark.asyncio
    async def test_groups_by_canonical_phone_with_survivor_first(self, password_hasher):
        # Arrange
        repo = InMemoryIdentityRepository()
        unified, stale, second, _ = await seed(repo)
        service = build_service(repo, password_hasher)

        # Act
        groups = service.find_duplicate_groups(await repo.find_all())

        # Assert
        assert len(groups) == 1
        assert [i.id for i in groups[0]] == [unified.id, second.id, stale.id]


class TestReconcile:
    """Tests for ReconciliationService.reconcile()."""

    @pytest.mark.asyncio
    async def test_merges_linkable_and_skips_complete_accounts(self, password_hasher):
        """Code-only leftovers fold in; a second password account is left alone."""
        # Arrange
        repo = InMemoryIdentityRepository()
        unified, stale, second, loner = await seed(repo)
        service = build_service(repo, password_hasher)

        # Act
        report = await service.reconcile()

        # Assert
        assert report.scanned == 4
        assert report.duplicate_groups == 1
        assert report.merged == [stale.id]
        assert report.skipped == [second.id]
        assert await repo.find_by_id(stale.id) is None
        survivor = await repo.find_by_id(unified.id)
        assert survivor.name == "Asha"
        # Canonical form of the second account's phone is taken by the survivor
        assert (await repo.find_by_id(second.id)).phone == "919876543210"
        assert (await repo.find_by_id(loner.id)).phone == "+918888877777"
        assert report.phones_canonicalized == 1

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, password_hasher):
        repo = InMemoryIdentityRepository()
        unified, stale, second, loner = await seed(repo)
        service = build_service(repo, password_hasher)
        before = await repo.find_all()

        report = await service.reconcile(dry_run=True)

        assert report.merged == [stale.id]
        assert report.skipped == [second.id]
        assert report.phones_canonicalized == 0
        assert await repo.find_all() == before


class TestAccountStats:
    """Tests for ReconciliationService.account_stats()."""

    @pytest.mark.asyncio
    async def test_counts_every_account_type(self, password_hasher):
        repo = InMemoryIdentityRepository()
        await seed(repo)
        service = build_service(repo, password_hasher)

        stats = await service.account_stats()

        assert stats.total == 4
        assert stats.by_account_type[AccountType.CODE_ONLY] == 2
        assert stats.by_account_type[AccountType.UNIFIED] == 1
        assert stats.by_account_type[AccountType.PASSWORD_ONLY] == 1
        assert stats.by_account_type[AccountType.SOCIAL] == 0
