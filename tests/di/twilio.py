"""Mock Twilio providers for testing."""

from dishka import Scope, provide

from lodge.adapter.twilio import MockTwilioVerifyStrategy, TwilioVerifyStrategy
from lodge.util.di.infrastructure.twilio import TwilioProvider


class MockTwilioProvider(TwilioProvider):
    """Mock Twilio provider using the mock Verify strategy."""

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_twilio_verify_strategy(self) -> TwilioVerifyStrategy:
        """Provide mock Twilio Verify strategy."""
        return MockTwilioVerifyStrategy()
