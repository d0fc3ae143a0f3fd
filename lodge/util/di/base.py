"""Base classes for dependency injection providers."""

from typing import ClassVar, Literal

from dishka import Provider

# Infrastructure pieces that tests can swap for in-memory or mock versions
Component = Literal["persistence", "twilio", "fast2sms", "google"]


class ProviderBase(Provider):
    """Base for all Lodge DI providers.

    Attributes:
        __mock_component__: Component this provider family supplies, or None
            for layer providers that are never mocked
        __is_mock__: True on the test implementation of a component
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
