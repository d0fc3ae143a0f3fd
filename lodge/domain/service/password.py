"""Password hashing contract and strength rules."""

from abc import ABC, abstractmethod

from lodge.domain.error import ValidationError

SPECIAL_CHARACTERS = set("@$!%*?&#^()_-+=[]{}|\\:;\"'<>,./~`")


class PasswordHasher(ABC):
    """Hashes secrets (passwords, locally generated codes) for storage."""

    @abstractmethod
    def hash(self, plain: str) -> str:
        """Return a salted digest of ``plain``."""
        pass

    @abstractmethod
    def verify(self, plain: str, digest: str) -> bool:
        """Whether ``plain`` matches ``digest``. Never raises on mismatch."""
        pass


def validate_password_strength(password: str) -> None:
    """Validate password meets minimum strength requirements.

    Requirements:
    - 8 to 128 characters
    - at least one uppercase letter, one lowercase letter and one digit
    - at least one special character

    Raises:
        ValidationError: If the password is too weak
    """
    if not password or not password.strip():
        raise ValidationError("Password cannot be empty")
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")
    if len(password) > 128:
        raise ValidationError("Password must not exceed 128 characters")
    if not any(c.isupper() for c in password):
        raise ValidationError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        raise ValidationError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        raise ValidationError("Password must contain at least one digit")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        raise ValidationError("Password must contain at least one special character")
