"""Purge stale verification attempts use case."""

from pydantic import BaseModel

from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import VerificationCodeService


class PurgeVerificationAttemptsRequest(BaseModel):
    """Purge verification attempts request."""

    pass


class PurgeVerificationAttemptsResponse(BaseModel):
    """Purge verification attempts response."""

    purged: int


class PurgeVerificationAttemptsUseCase(BaseUseCase):
    """Use case for deleting attempts older than the send-rate window."""

    def __init__(self, verification_service: VerificationCodeService) -> None:
        self.verification_service = verification_service

    async def execute(
        self, request: PurgeVerificationAttemptsRequest
    ) -> PurgeVerificationAttemptsResponse:
        purged = await self.verification_service.purge_stale()
        return PurgeVerificationAttemptsResponse(purged=purged)
