"""Twilio Verify adapter."""

from .verify import (
    MockTwilioVerifyStrategy,
    RealTwilioVerifyStrategy,
    TwilioVerifyStrategy,
)

__all__ = [
    "TwilioVerifyStrategy",
    "RealTwilioVerifyStrategy",
    "MockTwilioVerifyStrategy",
]
