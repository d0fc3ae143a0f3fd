"""Verification-code delivery chain.

Delivery providers are strategies tried in tier order. The send flow is an
explicit state machine::

    START -> TRY_PRIMARY -> SENT
                        \\-> TRY_SECONDARY -> SENT
                                          \\-> FALLBACK_LOCAL -> SENT
                                                             \\-> FAILED
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import logfire

from lodge.domain.value import DeliveryTier
from lodge.util.logging import mask_phone

CODE_LENGTH = 6

# Reference prefix providers use for stub responses that were never delivered
PLACEHOLDER_REFERENCE_PREFIX = "FALLBACK"


def generate_code(length: int = CODE_LENGTH) -> str:
    """Random numeric code."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


@dataclass(frozen=True)
class DeliveryReceipt:
    """What a provider reports after a send."""

    accepted: bool
    reference: str | None = None

    @property
    def is_placeholder(self) -> bool:
        """A stub response standing in for a real delivery."""
        return bool(self.reference) and self.reference.upper().startswith(
            PLACEHOLDER_REFERENCE_PREFIX
        )

    @property
    def delivered(self) -> bool:
        return self.accepted and not self.is_placeholder


class CodeDeliveryStrategy(ABC):
    """One link of the delivery chain.

    Strategies with ``validates_remotely`` generate and check codes on the
    provider side; the others deliver a code generated by ``issue_code``.
    """

    tier: DeliveryTier
    validates_remotely: bool = False

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether this strategy may be used at all."""
        pass

    def issue_code(self) -> str:
        """Code to deliver, for strategies that do not validate remotely."""
        return generate_code()

    @abstractmethod
    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        """Deliver a code to ``phone``.

        Args:
            phone: Canonical E.164 phone number
            code: Code to deliver, None for remotely validating strategies

        Raises:
            ProviderError: If the provider fails
        """
        pass

    async def check(self, phone: str, code: str) -> bool:
        """Ask the provider whether ``code`` is valid for ``phone``.

        Raises:
            ProviderError: If the provider fails
        """
        raise NotImplementedError(f"{type(self).__name__} does not validate codes")


class LocalFallbackStrategy(CodeDeliveryStrategy):
    """Last link of the chain: always succeeds with a fixed, well-known code.

    Only for environments without provider access. Never enable it where
    real users sign in.
    """

    tier = DeliveryTier.LOCAL

    def __init__(self, enabled: bool, code: str) -> None:
        self.enabled = enabled
        self.code = code

    def is_configured(self) -> bool:
        return self.enabled

    def issue_code(self) -> str:
        return self.code

    async def send(self, phone: str, code: str | None) -> DeliveryReceipt:
        logfire.warn(
            "Verification code issued by local fallback, no SMS sent",
            phone=mask_phone(phone),
        )
        return DeliveryReceipt(accepted=True, reference="local")


class SendState(str, Enum):
    """States of one code-send."""

    START = "start"
    TRY_PRIMARY = "try_primary"
    TRY_SECONDARY = "try_secondary"
    FALLBACK_LOCAL = "fallback_local"
    SENT = "sent"
    FAILED = "failed"


STATE_TIERS: dict[SendState, DeliveryTier] = {
    SendState.TRY_PRIMARY: DeliveryTier.PRIMARY,
    SendState.TRY_SECONDARY: DeliveryTier.SECONDARY,
    SendState.FALLBACK_LOCAL: DeliveryTier.LOCAL,
}

_NEXT_ON_FAILURE: dict[SendState, SendState] = {
    SendState.START: SendState.TRY_PRIMARY,
    SendState.TRY_PRIMARY: SendState.TRY_SECONDARY,
    SendState.TRY_SECONDARY: SendState.FALLBACK_LOCAL,
    SendState.FALLBACK_LOCAL: SendState.FAILED,
}


def advance(state: SendState, delivered: bool) -> SendState:
    """Transition function of the send state machine.

    Args:
        state: Current state
        delivered: Whether the provider tried in ``state`` delivered the code
            (ignored for START)

    Returns:
        Next state

    Raises:
        ValueError: If ``state`` is terminal
    """
    if state in (SendState.SENT, SendState.FAILED):
        raise ValueError(f"No transition out of terminal state {state.value}")
    if state != SendState.START and delivered:
        return SendState.SENT
    return _NEXT_ON_FAILURE[state]
