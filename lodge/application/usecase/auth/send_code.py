"""Send verification code use case."""

from pydantic import BaseModel

from lodge.application.usecase.base import BaseUseCase
from lodge.domain.service import VerificationCodeService
from lodge.domain.value import DeliveryTier


class SendVerificationCodeRequest(BaseModel):
    """Send verification code request."""

    phone: str
    resend: bool = False  # Apply the resend cooldown


class SendVerificationCodeResponse(BaseModel):
    """Send verification code response."""

    provider: DeliveryTier
    expires_in_seconds: int


class SendVerificationCodeUseCase(BaseUseCase):
    """Use case for sending a one-time code to a phone number."""

    def __init__(self, verification_service: VerificationCodeService) -> None:
        """Initialize send verification code use case.

        Args:
            verification_service: Verification-code domain service
        """
        self.verification_service = verification_service

    async def execute(
        self, request: SendVerificationCodeRequest
    ) -> SendVerificationCodeResponse:
        """Send a code through the delivery chain.

        Raises:
            ValidationError: If the phone is malformed
            RateLimitExceededError: If too many codes were requested
            CodeDeliveryUnavailableError: If no provider delivered the code
        """
        if request.resend:
            result = await self.verification_service.resend_code(request.phone)
        else:
            result = await self.verification_service.send_code(request.phone)

        return SendVerificationCodeResponse(
            provider=result.provider,
            expires_in_seconds=result.expires_in_seconds,
        )
