"""Twilio Verify delivery strategy.

Primary link of the delivery chain. Twilio generates, sends and checks the
code, so the stored attempt only records that validation is remote.
"""

import logfire
from starlette.concurrency import run_in_threadpool
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from lodge.adapter.error import ProviderError
from lodge.domain.service.code_delivery import CodeDeliveryStrategy, DeliveryReceipt
from lodge.domain.value import DeliveryTier
from lodge.util.logging import mask_phone

PROVIDER_NAME = "twilio"


class TwilioVerifyStrategy(CodeDeliveryStrategy):
    """Base class for Twilio Verify strategies.

    Provides type distinction for dependency injection.
    """

    tier = DeliveryTier.PRIMARY
    validates_remotely = True


class RealTwilioVerifyStrategy(TwilioVerifyStrategy):
    """Twilio Verify strategy backed by the Twilio REST client.

    The REST client is synchronous; calls run in the threadpool.
    """

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        verify_service_sid: str | None,
    ) -> None:
        """Initialize Twilio Verify strategy.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            verify_service_sid: SID of the Verify service
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.verify_service_sid = verify_service_sid
        self._client: Client | None = None

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.verify_service_sid)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        """Start a Twilio verification for ``phone``.

        Raises:
            ProviderError: If Twilio rejects the request
        """
        service = self.client.verify.v2.services(self.verify_service_sid)
        try:
            verification = await run_in_threadpool(
                service.verifications.create, to=phone, channel="sms"
            )
        except TwilioRestException as e:
            logfire.error(
                "Twilio verification start failed",
                phone=mask_phone(phone),
                status=e.status,
                code=e.code,
            )
            raise ProviderError(PROVIDER_NAME, f"verification start failed: {e.msg}")

        if verification.status != "pending":
            logfire.warn(
                "Twilio verification start had unexpected status",
                phone=mask_phone(phone),
                status=verification.status,
            )
            return DeliveryReceipt(accepted=False, reference=verification.sid)

        logfire.info("Twilio verification started", phone=mask_phone(phone))
        return DeliveryReceipt(accepted=True, reference=verification.sid)

    async def check(self, phone: str, code: str) -> bool:
        """Check a code with Twilio Verify.

        Raises:
            ProviderError: If Twilio fails for a reason other than an unknown
                or expired verification
        """
        service = self.client.verify.v2.services(self.verify_service_sid)
        try:
            response = await run_in_threadpool(
                service.verification_checks.create, to=phone, code=code
            )
        except TwilioRestException as e:
            if e.status == 404:
                # Twilio forgets verifications once approved, expired or exhausted
                return False
            logfire.error(
                "Twilio verification check failed",
                phone=mask_phone(phone),
                status=e.status,
                code=e.code,
            )
            raise ProviderError(PROVIDER_NAME, f"verification check failed: {e.msg}")

        return response.status == "approved"


class MockTwilioVerifyStrategy(TwilioVerifyStrategy):
    """Mock Twilio Verify strategy for testing.

    Approves ``approved_code`` for any phone that was sent a code.
    """

    def __init__(
        self,
        configured: bool = True,
        fail_sends: bool = False,
        approved_code: str = "246810",
    ) -> None:
        self.configured = configured
        self.fail_sends = fail_sends
        self.approved_code = approved_code
        self.sent_to: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        if self.fail_sends:
            raise ProviderError(PROVIDER_NAME, "mock outage")
        self.sent_to.append(phone)
        return DeliveryReceipt(accepted=True, reference=f"VE{len(self.sent_to):032d}")

    async def check(self, phone: str, code: str) -> bool:
        return phone in self.sent_to and code == self.approved_code
