"""Delivery chain provider for verification codes."""

from dishka import Scope, provide

from lodge.adapter.fast2sms import Fast2SMSStrategy
from lodge.adapter.twilio import TwilioVerifyStrategy
from lodge.config import VerificationSettings
from lodge.domain.service import CodeDeliveryStrategy, LocalFallbackStrategy
from lodge.util.di.base import ProviderBase


class DeliveryChainProvider(ProviderBase):
    """Provider that assembles the delivery strategies in tier order."""

    @provide(scope=Scope.REQUEST)
    def get_delivery_chain(
        self,
        twilio_strategy: TwilioVerifyStrategy,
        fast2sms_strategy: Fast2SMSStrategy,
        verification_settings: VerificationSettings,
    ) -> list[CodeDeliveryStrategy]:
        """Provide the delivery chain: Twilio Verify, Fast2SMS, local fallback.

        Args:
            twilio_strategy: Primary strategy
            fast2sms_strategy: Secondary strategy
            verification_settings: Decides whether the local fallback is enabled

        Returns:
            Strategies ordered primary first
        """
        return [
            twilio_strategy,
            fast2sms_strategy,
            LocalFallbackStrategy(
                enabled=bool(verification_settings.allow_local_fallback),
                code=verification_settings.local_fallback_code,
            ),
        ]
