"""Identity repository interface."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from typing import Any, Optional

from lodge.domain.model import Identity
from lodge.domain.value import AccountType, IdentityId


class IdentityRepository(ABC):
    """Repository for the Identity aggregate.

    Implementations enforce uniqueness of email, phone, handle and google_id
    and report violations as ``DuplicateKeyError``.
    """

    @abstractmethod
    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find an identity by ID.

        Args:
            identity_id: The identity's unique identifier

        Returns:
            The identity if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_contact(
        self, email: str | None, phone_variants: Collection[str]
    ) -> list[Identity]:
        """Find every identity whose email equals ``email`` OR whose phone is
        any of ``phone_variants``, in a single query.

        Args:
            email: Normalized email, or None
            phone_variants: Stored-format variants of one phone number

        Returns:
            Matching identities, oldest first
        """
        pass

    @abstractmethod
    async def find_by_google_id(self, google_id: str) -> Optional[Identity]:
        """Find an identity by its Google subject ID."""
        pass

    @abstractmethod
    async def find_all(self) -> list[Identity]:
        """Return every identity, oldest first."""
        pass

    @abstractmethod
    async def insert(self, identity: Identity) -> Identity:
        """Insert a new identity.

        Raises:
            DuplicateKeyError: If a unique field is already taken
        """
        pass

    @abstractmethod
    async def update(self, identity: Identity) -> Identity:
        """Overwrite an existing identity.

        Raises:
            DuplicateKeyError: If a unique field is already taken
        """
        pass

    @abstractmethod
    async def fill_missing(
        self,
        identity_id: IdentityId,
        gaps: dict[str, Any],
        overrides: dict[str, Any],
    ) -> Optional[Identity]:
        """Atomically fill null fields and apply overrides in one update.

        Each key of ``gaps`` is written only where the stored value is null;
        a concurrent writer that filled it first wins. ``overrides`` are
        written unconditionally.

        Args:
            identity_id: Identity to update
            gaps: Field values applied only to null columns
            overrides: Field values applied unconditionally

        Returns:
            The identity as stored after the update, None if it does not exist

        Raises:
            DuplicateKeyError: If a filled unique field is already taken
        """
        pass

    @abstractmethod
    async def delete(self, identity_id: IdentityId) -> None:
        """Delete an identity (merge source only)."""
        pass

    @abstractmethod
    async def count_by_account_type(self) -> dict[AccountType, int]:
        """Count identities per account type."""
        pass
