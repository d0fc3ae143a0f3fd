"""One-time-code verification domain service."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import uuid4

import logfire

from lodge.adapter.error import ProviderError
from lodge.config import VerificationSettings
from lodge.domain.error import (
    CodeDeliveryUnavailableError,
    InvalidOrExpiredCodeError,
    RateLimitExceededError,
    ValidationError,
)
from lodge.domain.model import LocallyHashed, RemoteValidated, VerificationAttempt
from lodge.domain.model.common import utc_now
from lodge.domain.repository import VerificationAttemptRepository
from lodge.domain.service.base import Service
from lodge.domain.service.code_delivery import (
    STATE_TIERS,
    CodeDeliveryStrategy,
    DeliveryReceipt,
    SendState,
    advance,
)
from lodge.domain.service.password import PasswordHasher
from lodge.domain.value import DeliveryTier, VerificationAttemptId, canonical_phone
from lodge.util.logging import mask_phone

_CODE_SHAPE = re.compile(r"^\d{4,8}$")


@dataclass(frozen=True)
class SendResult:
    """Outcome of a successful code-send."""

    attempt_id: VerificationAttemptId
    phone: str
    provider: DeliveryTier
    expires_in_seconds: int


@dataclass(frozen=True)
class _Delivery:
    strategy: CodeDeliveryStrategy
    code: str | None
    receipt: DeliveryReceipt


class VerificationCodeService(Service):
    """Sends and checks one-time codes through the delivery chain.

    Rate limiting and attempt budgets are enforced from stored attempts,
    so they hold across processes.
    """

    def __init__(
        self,
        attempt_repository: VerificationAttemptRepository,
        strategies: list[CodeDeliveryStrategy],
        password_hasher: PasswordHasher,
        settings: VerificationSettings,
    ) -> None:
        """Initialize verification code service.

        Args:
            attempt_repository: Verification attempt repository
            strategies: Delivery strategies, at most one per tier
            password_hasher: Hasher for locally generated codes
            settings: Verification settings
        """
        self.attempt_repository = attempt_repository
        self.strategies = {s.tier: s for s in strategies}
        self.password_hasher = password_hasher
        self.settings = settings

    async def send_code(self, phone: str) -> SendResult:
        """Send a verification code to ``phone``.

        Args:
            phone: Phone number as supplied by the caller

        Returns:
            Which tier delivered the code and when it expires

        Raises:
            ValidationError: If the phone is malformed
            RateLimitExceededError: If too many codes were sent recently
            CodeDeliveryUnavailableError: If no strategy delivered the code
        """
        canonical = canonical_phone(phone, self.settings.default_region)

        with logfire.span(
            "verification_service.send_code", phone=mask_phone(canonical)
        ):
            now = utc_now()
            await self._enforce_rate_limit(canonical, now)

            delivery: _Delivery | None = None
            state = advance(SendState.START, delivered=False)
            while state not in (SendState.SENT, SendState.FAILED):
                tier = STATE_TIERS[state]
                delivery = await self._try_deliver(tier, canonical)
                state = advance(state, delivered=delivery is not None)

            if state == SendState.FAILED or delivery is None:
                logfire.error(
                    "Every delivery provider failed", phone=mask_phone(canonical)
                )
                raise CodeDeliveryUnavailableError()

            if delivery.strategy.validates_remotely:
                code = RemoteValidated()
            else:
                code = LocallyHashed(digest=self.password_hasher.hash(delivery.code))

            ttl = timedelta(minutes=self.settings.code_ttl_minutes)
            attempt = VerificationAttempt(
                id=VerificationAttemptId(uuid4()),
                phone=canonical,
                code=code,
                provider=delivery.strategy.tier,
                provider_reference=delivery.receipt.reference,
                attempts=0,
                created_at=now,
                expires_at=now + ttl,
            )
            await self.attempt_repository.insert(attempt)

            logfire.info(
                "Verification code sent",
                phone=mask_phone(canonical),
                provider=attempt.provider.value,
                attempt_id=str(attempt.id),
            )
            return SendResult(
                attempt_id=attempt.id,
                phone=canonical,
                provider=attempt.provider,
                expires_in_seconds=int(ttl.total_seconds()),
            )

    async def resend_code(self, phone: str) -> SendResult:
        """Send a new code unless the previous one went out moments ago.

        Raises:
            RateLimitExceededError: Within the resend cooldown, or over the
                rolling send limit
        """
        canonical = canonical_phone(phone, self.settings.default_region)
        latest = await self.attempt_repository.find_latest_for_phone(canonical)
        if latest:
            elapsed = (utc_now() - latest.created_at).total_seconds()
            cooldown = self.settings.resend_cooldown_seconds
            if elapsed < cooldown:
                retry_after = int(cooldown - elapsed) + 1
                logfire.warn(
                    "Resend requested during cooldown",
                    phone=mask_phone(canonical),
                    retry_after_seconds=retry_after,
                )
                raise RateLimitExceededError(
                    retry_after,
                    f"Please wait {retry_after} seconds before requesting a new code",
                )
        return await self.send_code(canonical)

    async def verify_code(self, phone: str, code: str) -> str:
        """Check a submitted code against the latest attempt for ``phone``.

        Args:
            phone: Phone number as supplied by the caller
            code: Submitted code

        Returns:
            The canonical phone number, now proven

        Raises:
            ValidationError: If the phone or the code is malformed
            InvalidOrExpiredCodeError: For a wrong, expired or exhausted code
        """
        canonical = canonical_phone(phone, self.settings.default_region)
        code = (code or "").strip()
        if not _CODE_SHAPE.match(code):
            raise ValidationError("Verification code must be numeric")

        with logfire.span(
            "verification_service.verify_code", phone=mask_phone(canonical)
        ):
            attempt = await self.attempt_repository.find_latest_for_phone(canonical)
            if not attempt or attempt.is_consumed:
                logfire.warn("No live verification attempt", phone=mask_phone(canonical))
                raise InvalidOrExpiredCodeError()

            now = utc_now()
            if attempt.is_expired(now) or attempt.attempts >= self.settings.max_attempts:
                logfire.warn(
                    "Verification attempt expired or exhausted",
                    attempt_id=str(attempt.id),
                    attempts=attempt.attempts,
                )
                await self.attempt_repository.mark_consumed(attempt.id, now)
                raise InvalidOrExpiredCodeError()

            if await self._matches(attempt, code):
                await self.attempt_repository.mark_consumed(attempt.id, now)
                logfire.info(
                    "Verification code approved",
                    phone=mask_phone(canonical),
                    provider=attempt.provider.value,
                )
                return canonical

            attempts = await self.attempt_repository.increment_attempts(attempt.id)
            if attempts >= self.settings.max_attempts:
                await self.attempt_repository.mark_consumed(attempt.id, now)
            logfire.warn(
                "Verification code rejected",
                attempt_id=str(attempt.id),
                attempts=attempts,
            )
            raise InvalidOrExpiredCodeError()

    async def purge_stale(self) -> int:
        """Delete attempts that no longer matter for expiry or rate limiting.

        Returns:
            Number of attempts deleted
        """
        retention = timedelta(
            minutes=max(
                self.settings.send_window_minutes, self.settings.code_ttl_minutes
            )
        )
        purged = await self.attempt_repository.purge_created_before(
            utc_now() - retention
        )
        logfire.info("Stale verification attempts purged", count=purged)
        return purged

    async def _enforce_rate_limit(self, phone: str, now: datetime) -> None:
        window = timedelta(minutes=self.settings.send_window_minutes)
        recent = await self.attempt_repository.find_created_since(phone, now - window)
        if len(recent) < self.settings.max_sends_per_window:
            return

        # The window frees up when the oldest counted send falls out of it
        oldest = recent[-self.settings.max_sends_per_window]
        retry_after = int((oldest.created_at + window - now).total_seconds()) + 1
        logfire.warn(
            "Verification send rate limit exceeded",
            phone=mask_phone(phone),
            sends=len(recent),
            retry_after_seconds=retry_after,
        )
        raise RateLimitExceededError(retry_after)

    async def _try_deliver(self, tier: DeliveryTier, phone: str) -> _Delivery | None:
        strategy = self.strategies.get(tier)
        if strategy is None or not strategy.is_configured():
            logfire.debug("Delivery tier not configured", tier=tier.value)
            return None

        code = None if strategy.validates_remotely else strategy.issue_code()
        try:
            receipt = await strategy.send(phone, code)
        except ProviderError as e:
            logfire.warn(
                "Delivery provider failed", tier=tier.value, error=str(e)
            )
            return None

        if not receipt.delivered:
            logfire.warn(
                "Delivery provider did not deliver",
                tier=tier.value,
                accepted=receipt.accepted,
                placeholder=receipt.is_placeholder,
            )
            return None
        return _Delivery(strategy=strategy, code=code, receipt=receipt)

    async def _matches(self, attempt: VerificationAttempt, code: str) -> bool:
        if isinstance(attempt.code, RemoteValidated):
            strategy = self.strategies.get(attempt.provider)
            if strategy is None or not strategy.validates_remotely:
                logfire.error(
                    "No remote validator for attempt", provider=attempt.provider.value
                )
                return False
            try:
                return await strategy.check(attempt.phone, code)
            except ProviderError as e:
                logfire.warn("Remote code check failed", error=str(e))
                return False

        return self.password_hasher.verify(code, attempt.code.digest)
