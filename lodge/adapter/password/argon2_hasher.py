"""Password hashing using argon2id.

Argon2id is the winner of the Password Hashing Competition and is resistant
to both GPU-based and side-channel attacks. Locally generated verification
codes are hashed with the same hasher.
"""

import argon2

from lodge.domain.service.password import PasswordHasher


class Argon2PasswordHasher(PasswordHasher):
    """argon2id implementation of the domain password hasher."""

    def __init__(
        self,
        time_cost: int = 2,
        memory_cost: int = 65536,  # 64 MB
        parallelism: int = 1,
    ) -> None:
        self._hasher = argon2.PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
            type=argon2.Type.ID,  # argon2id
        )

    def hash(self, plain: str) -> str:
        """Hash a secret using argon2id. Returns the full hash string."""
        return self._hasher.hash(plain)

    def verify(self, plain: str, digest: str) -> bool:
        """Verify a secret against its argon2id hash.

        Returns True if the secret matches. Never raises on mismatch.
        """
        try:
            return self._hasher.verify(digest, plain)
        except argon2.exceptions.VerificationError:
            return False
        except argon2.exceptions.InvalidHashError:
            return False

    def needs_rehash(self, digest: str) -> bool:
        """Check if the hash needs to be updated (parameters changed)."""
        return self._hasher.check_needs_rehash(digest)
