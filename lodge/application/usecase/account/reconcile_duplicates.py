"""Reconcile duplicate identities use case."""

from pydantic import BaseModel

from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import ReconciliationService


class ReconcileDuplicatesRequest(BaseModel):
    """Reconcile duplicates request."""

    dry_run: bool = False


class ReconcileDuplicatesResponse(BaseModel):
    """Reconcile duplicates response."""

    scanned: int
    duplicate_groups: int
    merged: list[str]
    skipped: list[str]
    phones_canonicalized: int
    dry_run: bool


class ReconcileDuplicatesUseCase(BaseUseCase):
    """Use case for folding duplicate identities into one survivor each."""

    def __init__(self, reconciliation_service: ReconciliationService) -> None:
        """Initialize reconcile duplicates use case.

        Args:
            reconciliation_service: Reconciliation domain service
        """
        self.reconciliation_service = reconciliation_service

    async def execute(
        self, request: ReconcileDuplicatesRequest
    ) -> ReconcileDuplicatesResponse:
        """Run one reconciliation pass."""
        report = await self.reconciliation_service.reconcile(dry_run=request.dry_run)
        return ReconcileDuplicatesResponse(
            scanned=report.scanned,
            duplicate_groups=report.duplicate_groups,
            merged=[str(i) for i in report.merged],
            skipped=[str(i) for i in report.skipped],
            phones_canonicalized=report.phones_canonicalized,
            dry_run=request.dry_run,
        )
