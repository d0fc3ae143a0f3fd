"""Twilio infrastructure providers."""

from dishka import Scope, provide

from lodge.adapter.twilio import RealTwilioVerifyStrategy, TwilioVerifyStrategy
from lodge.config import Settings
from lodge.util.di.base import ProviderBase


class TwilioProvider(ProviderBase):
    """Twilio component base."""

    __mock_component__ = "twilio"


class ProdTwilioProvider(TwilioProvider):
    """Production Twilio provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_twilio_verify_strategy(self, settings: Settings) -> TwilioVerifyStrategy:
        """Provide Twilio Verify delivery strategy.

        Missing credentials leave the strategy unconfigured; the delivery
        chain then skips it.
        """
        return RealTwilioVerifyStrategy(
            account_sid=settings.twilio.account_sid,
            auth_token=settings.twilio.auth_token,
            verify_service_sid=settings.twilio.verify_service_sid,
        )
