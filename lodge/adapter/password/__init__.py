"""Password hashing adapter."""

from .argon2_hasher import Argon2PasswordHasher

__all__ = ["Argon2PasswordHasher"]
