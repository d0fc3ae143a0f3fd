"""Fast2SMS adapter."""

from .client import Fast2SMSStrategy, MockFast2SMSStrategy, RealFast2SMSStrategy

__all__ = ["Fast2SMSStrategy", "RealFast2SMSStrategy", "MockFast2SMSStrategy"]
