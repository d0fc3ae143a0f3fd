"""Mock providers for testing."""

from .fast2sms import MockFast2SMSProvider
from .google import MockGoogleProvider
from .persistence import MockPersistenceProvider
from .twilio import MockTwilioProvider
from .container import build_test_container

__all__ = [
    "MockFast2SMSProvider",
    "MockGoogleProvider",
    "MockPersistenceProvider",
    "MockTwilioProvider",
    "build_test_container",
]
