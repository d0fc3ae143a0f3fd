"""Fast2SMS delivery strategy.

Secondary link of the delivery chain. The code is generated locally, sent
through the Fast2SMS OTP route, and checked against its stored hash.
"""

import httpx
import logfire

from lodge.adapter.error import ProviderError
from lodge.domain.service.code_delivery import CodeDeliveryStrategy, DeliveryReceipt
from lodge.domain.value import DeliveryTier
from lodge.util.logging import mask_phone

PROVIDER_NAME = "fast2sms"


class Fast2SMSStrategy(CodeDeliveryStrategy):
    """Base class for Fast2SMS strategies.

    Provides type distinction for dependency injection.
    """

    tier = DeliveryTier.SECONDARY


class RealFast2SMSStrategy(Fast2SMSStrategy):
    """Fast2SMS strategy using the bulkV2 OTP route."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://www.fast2sms.com/dev/bulkV2",
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize Fast2SMS strategy.

        Args:
            api_key: Fast2SMS API key
            base_url: bulkV2 endpoint
            timeout_seconds: Request timeout
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        """Send ``code`` by SMS.

        Fast2SMS expects the 10-digit national number.

        Raises:
            ProviderError: On HTTP failure or an unparseable response
        """
        if not code:
            raise ProviderError(PROVIDER_NAME, "a locally generated code is required")

        params = {
            "authorization": self.api_key,
            "variables_values": code,
            "route": "otp",
            "numbers": phone[-10:],
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.base_url,
                    params=params,
                    headers={"cache-control": "no-cache"},
                    timeout=self.timeout_seconds,
                )

                if response.status_code != 200:
                    logfire.error(
                        "Fast2SMS request failed",
                        phone=mask_phone(phone),
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise ProviderError(
                        PROVIDER_NAME, f"request failed: {response.status_code}"
                    )

                data = response.json()

        except httpx.HTTPError as e:
            logfire.error("Fast2SMS HTTP error", phone=mask_phone(phone), error=str(e))
            raise ProviderError(PROVIDER_NAME, f"HTTP error: {e}")
        except ValueError as e:
            raise ProviderError(PROVIDER_NAME, f"invalid response: {e}")

        if not data.get("return"):
            logfire.warn(
                "Fast2SMS rejected the message",
                phone=mask_phone(phone),
                message=data.get("message"),
            )
            return DeliveryReceipt(accepted=False)

        logfire.info("Fast2SMS message sent", phone=mask_phone(phone))
        return DeliveryReceipt(accepted=True, reference=data.get("request_id"))


class MockFast2SMSStrategy(Fast2SMSStrategy):
    """Mock Fast2SMS strategy for testing.

    Records the last code sent to each phone.
    """

    def __init__(self, configured: bool = True, fail_sends: bool = False) -> None:
        self.configured = configured
        self.fail_sends = fail_sends
        self.sent: dict[str, str] = {}

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        if self.fail_sends:
            raise ProviderError(PROVIDER_NAME, "mock outage")
        self.sent[phone] = code
        return DeliveryReceipt(accepted=True, reference=f"mock-{len(self.sent)}")
