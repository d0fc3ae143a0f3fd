"""Unit tests for the account maintenance use cases."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from dishka import AsyncContainer
import pytest

from lodge.application.usecase.account import (
    GetAccountStatsUseCase,
    PurgeVerificationAttemptsUseCase,
    ReconcileDuplicatesUseCase,
)
from lodge.application.usecase.account.get_account_stats import (
    GetAccountStatsRequest,
)
from lodge.application.usecase.account.purge_verification_attempts import (
    PurgeVerificationAttemptsRequest,
)
from lodge.application.usecase.account.reconcile_duplicates import (
    ReconcileDuplicatesRequest,
)
from lodge.domain.model import RemoteValidated, VerificationAttempt
from lodge.domain.repository import IdentityRepository, VerificationAttemptRepository
from lodge.domain.value import (
    AccountType,
    DeliveryTier,
    RegistrationMethod,
    VerificationAttemptId,
)
from tests.conftest import make_identity
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


async def seed_duplicates(env: AsyncContainer):
    now = datetime.now(timezone.utc)
    repo = await env.get(IdentityRepository)
    survivor = await repo.insert(
        make_identity(
            email="asha@example.com",
            password_hash="$argon2id$stub",
            account_type=AccountType.PASSWORD_ONLY,
            registration_method=RegistrationMethod.PASSWORD,
            created_at=now - timedelta(days=20),
        )
    )
    stale = await repo.insert(
        make_identity(
            email="asha@example.com".upper(),
            phone="09876543210",
            created_at=now - timedelta(days=2),
        )
    )
    return survivor, stale


class TestReconcileDuplicates:
    """Tests for ReconcileDuplicatesUseCase."""

    @pytest.mark.asyncio
    async def test_merges_duplicates(self, unit_env: AsyncContainer):
        # Arrange
        survivor, stale = await seed_duplicates(unit_env)
        use_case = await unit_env.get(ReconcileDuplicatesUseCase)

        # Act
        response = await use_case.execute(ReconcileDuplicatesRequest())

        # Assert
        assert response.scanned == 2
        assert response.duplicate_groups == 1
        assert response.merged == [str(stale.id)]
        assert not response.dry_run
        repo = await unit_env.get(IdentityRepository)
        [remaining] = await repo.find_all()
        assert remaining.id == survivor.id
        assert remaining.phone == "+919876543210"
        assert remaining.account_type == AccountType.UNIFIED

    @pytest.mark.asyncio
    async def test_dry_run_reports_only(self, unit_env: AsyncContainer):
        _, stale = await seed_duplicates(unit_env)
        use_case = await unit_env.get(ReconcileDuplicatesUseCase)

        response = await use_case.execute(ReconcileDuplicatesRequest(dry_run=True))

        assert response.dry_run
        assert response.merged == [str(stale.id)]
        repo = await unit_env.get(IdentityRepository)
        assert len(await repo.find_all()) == 2


class TestGetAccountStats:
    """Tests for GetAccountStatsUseCase."""

    @pytest.mark.asyncio
    async def test_counts_every_account_type(self, unit_env: AsyncContainer):
        await seed_duplicates(unit_env)
        use_case = await unit_env.get(GetAccountStatsUseCase)

        response = await use_case.execute(GetAccountStatsRequest())

        assert response.total == 2
        assert response.by_account_type[AccountType.PASSWORD_ONLY] == 1
        assert response.by_account_type[AccountType.CODE_ONLY] == 1
        assert response.by_account_type[AccountType.SOCIAL] == 0


class TestPurgeVerificationAttemptsUseCase:
    """Tests for PurgeVerificationAttemptsUseCase."""

    @pytest.mark.asyncio
    async def test_purges_attempts_older_than_the_send_window(self, unit_env):
        # Arrange
        repo = await unit_env.get(VerificationAttemptRepository)
        now = datetime.now(timezone.utc)
        for age in (timedelta(minutes=45), timedelta(days=1)):
            await repo.insert(
                VerificationAttempt(
                    id=VerificationAttemptId(uuid4()),
                    phone="+919876543210",
                    code=RemoteValidated(),
                    provider=DeliveryTier.PRIMARY,
                    created_at=now - age,
                    expires_at=now - age + timedelta(minutes=10),
                )
            )
        use_case = await unit_env.get(PurgeVerificationAttemptsUseCase)

        # Act
        result = await use_case.execute(PurgeVerificationAttemptsRequest())

        # Assert
        assert result.purged == 1
        remaining = await repo.find_created_since(
            "+919876543210", now - timedelta(days=2)
        )
        assert len(remaining) == 1
