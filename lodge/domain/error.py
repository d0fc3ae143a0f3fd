"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error (malformed phone, email, password...)."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class RateLimitExceededError(DomainError):
    """Too many verification codes requested for a phone number."""

    def __init__(self, retry_after_seconds: int, message: str | None = None):
        self.retry_after_seconds = max(int(retry_after_seconds), 1)
        super().__init__(
            message
            or f"Too many verification requests. Try again in {self.retry_after_seconds} seconds"
        )


class InvalidOrExpiredCodeError(DomainError):
    """The submitted code is wrong, expired, exhausted, or was never sent.

    A single error type so callers cannot tell these cases apart.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired verification code")


class CodeDeliveryUnavailableError(DomainError):
    """Every configured delivery provider failed and no fallback is allowed."""

    def __init__(self) -> None:
        super().__init__("Unable to send verification code. Please try again later")


class DuplicateAccountConflictError(DomainError):
    """The supplied contact details already belong to an account that cannot absorb them."""

    def __init__(self, message: str, reason: str | None = None):
        self.reason = reason
        super().__init__(message)


class LinkingBlockedError(DuplicateAccountConflictError):
    """The existing account is not eligible for linking."""

    pass


class IntegrityFaultError(DomainError):
    """Stored identities violate the one-account-per-person invariant."""

    pass


class DuplicateKeyError(DomainError):
    """A store rejected a write because a unique field is already taken."""

    def __init__(self, field: str | None = None):
        self.field = field
        super().__init__(f"Duplicate value for unique field: {field or 'unknown'}")


class InvalidCredentialsError(DomainError):
    """Email/password combination did not match."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class AccountLockedError(DomainError):
    """Password login is temporarily locked after repeated failures."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = max(int(retry_after_seconds), 1)
        minutes = -(-self.retry_after_seconds // 60)
        super().__init__(
            f"Account temporarily locked due to too many failed login attempts. "
            f"Try again in {minutes} minutes"
        )
