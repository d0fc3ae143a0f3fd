"""Fast2SMS infrastructure providers."""

from dishka import Scope, provide

from lodge.adapter.fast2sms import Fast2SMSStrategy, RealFast2SMSStrategy
from lodge.config import Settings
from lodge.util.di.base import ProviderBase


class Fast2SMSProvider(ProviderBase):
    """Fast2SMS component base."""

    __mock_component__ = "fast2sms"


class ProdFast2SMSProvider(Fast2SMSProvider):
    """Production Fast2SMS provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_fast2sms_strategy(self, settings: Settings) -> Fast2SMSStrategy:
        """Provide Fast2SMS delivery strategy."""
        return RealFast2SMSStrategy(
            api_key=settings.fast2sms.api_key,
            base_url=settings.fast2sms.base_url,
            timeout_seconds=settings.fast2sms.timeout_seconds,
        )
