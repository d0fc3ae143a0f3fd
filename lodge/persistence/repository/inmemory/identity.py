"""In-memory identity repository for testing."""

from collections import Counter
from collections.abc import Collection
from typing import Any, Optional

from lodge.domain.error import DuplicateKeyError
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.repository import IdentityRepository
from lodge.domain.value import AccountType, IdentityId

UNIQUE_FIELDS = ("email", "phone", "handle", "google_id")


class InMemoryIdentityRepository(IdentityRepository):
    """In-memory implementation of IdentityRepository for testing.

    Mirrors the unique constraints of the identities table.
    """

    def __init__(self) -> None:
        self._identities: dict[IdentityId, Identity] = {}

    def _check_unique(self, identity: Identity) -> None:
        for other in self._identities.values():
            if other.id == identity.id:
                continue
            for field in UNIQUE_FIELDS:
                value = getattr(identity, field)
                if value is not None and value == getattr(other, field):
                    raise DuplicateKeyError(field)

    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find an identity by ID."""
        return self._identities.get(identity_id)

    async def find_by_contact(
        self, email: str | None, phone_variants: Collection[str]
    ) -> list[Identity]:
        """Find identities by email or any phone variant."""
        variants = set(phone_variants)
        matches = [
            identity
            for identity in self._identities.values()
            if (email is not None and identity.email == email)
            or (identity.phone is not None and identity.phone in variants)
        ]
        return sorted(matches, key=lambda i: i.created_at)

    async def find_by_google_id(self, google_id: str) -> Optional[Identity]:
        """Find an identity by Google subject ID."""
        for identity in self._identities.values():
            if identity.google_id == google_id:
                return identity
        return None

    async def find_all(self) -> list[Identity]:
        """Return every identity, oldest first."""
        return sorted(self._identities.values(), key=lambda i: i.created_at)

    async def insert(self, identity: Identity) -> Identity:
        """Insert a new identity."""
        if identity.id in self._identities:
            raise DuplicateKeyError("id")
        self._check_unique(identity)
        self._identities[identity.id] = identity
        return identity

    async def update(self, identity: Identity) -> Identity:
        """Overwrite an existing identity."""
        self._check_unique(identity)
        self._identities[identity.id] = identity
        return identity

    async def fill_missing(
        self,
        identity_id: IdentityId,
        gaps: dict[str, Any],
        overrides: dict[str, Any],
    ) -> Optional[Identity]:
        """Fill null fields and apply overrides."""
        current = self._identities.get(identity_id)
        if not current:
            return None

        update = {
            key: value
            for key, value in gaps.items()
            if value is not None and getattr(current, key) is None
        }
        update.update(overrides)
        update["updated_at"] = utc_now()

        updated = current.model_copy(update=update)
        self._check_unique(updated)
        self._identities[identity_id] = updated
        return updated

    async def delete(self, identity_id: IdentityId) -> None:
        """Delete an identity."""
        self._identities.pop(identity_id, None)

    async def count_by_account_type(self) -> dict[AccountType, int]:
        """Count identities per account type."""
        return dict(Counter(i.account_type for i in self._identities.values()))
