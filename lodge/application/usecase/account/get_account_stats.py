"""Get account statistics use case."""

from pydantic import BaseModel

from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import ReconciliationService
from lodge.domain.value import AccountType


class GetAccountStatsRequest(BaseModel):
    """Get account stats request."""

    pass


class GetAccountStatsResponse(BaseModel):
    """Identity counts per account type."""

    total: int
    by_account_type: dict[AccountType, int]


class GetAccountStatsUseCase(BaseUseCase):
    """Use case for counting identities per account type."""

    def __init__(self, reconciliation_service: ReconciliationService) -> None:
        self.reconciliation_service = reconciliation_service

    async def execute(self, request: GetAccountStatsRequest) -> GetAccountStatsResponse:
        stats = await self.reconciliation_service.account_stats()
        return GetAccountStatsResponse(
            total=stats.total, by_account_type=stats.by_account_type
        )
