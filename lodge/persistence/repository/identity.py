"""PostgreSQL implementation of Identity repository."""

from collections.abc import Collection
from typing import Any, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lodge.domain.error import DuplicateKeyError
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.repository import IdentityRepository
from lodge.domain.value import AccountType, IdentityId
from lodge.persistence.mappers import (
    identity_fields_to_columns,
    identity_to_dict,
    row_to_identity,
)
from lodge.persistence.tables import identities_table

_CONSTRAINT_FIELDS = {
    "uq_identities_email": "email",
    "uq_identities_phone": "phone",
    "uq_identities_handle": "handle",
    "uq_identities_google_id": "google_id",
    "identities_pkey": "id",
}


def duplicate_field(error: IntegrityError) -> str | None:
    """Name of the unique field behind an IntegrityError, if recognizable."""
    message = str(error.orig)
    for constraint, field in _CONSTRAINT_FIELDS.items():
        if constraint in message:
            return field
    return None


class PostgresIdentityRepository(IdentityRepository):
    """PostgreSQL implementation of IdentityRepository.

    Writes run inside a SAVEPOINT so that a uniqueness violation leaves the
    request transaction usable for the follow-up read.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _execute_write(self, stmt) -> Any:
        try:
            async with self.session.begin_nested():
                return await self.session.execute(stmt)
        except IntegrityError as e:
            field = duplicate_field(e)
            if field is None:
                raise
            raise DuplicateKeyError(field) from e

    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find an identity by ID."""
        stmt = select(identities_table).where(identities_table.c.id == identity_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_identity(dict(row)) if row else None

    async def find_by_contact(
        self, email: str | None, phone_variants: Collection[str]
    ) -> list[Identity]:
        """Find identities by email OR any phone variant in one query."""
        conditions = []
        if email:
            conditions.append(identities_table.c.email == email)
        if phone_variants:
            conditions.append(identities_table.c.phone.in_(list(phone_variants)))
        if not conditions:
            return []

        stmt = (
            select(identities_table)
            .where(or_(*conditions))
            .order_by(identities_table.c.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [row_to_identity(dict(row)) for row in result.mappings().all()]

    async def find_by_google_id(self, google_id: str) -> Optional[Identity]:
        """Find an identity by Google subject ID."""
        stmt = select(identities_table).where(
            identities_table.c.google_id == google_id
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_identity(dict(row)) if row else None

    async def find_all(self) -> list[Identity]:
        """Return every identity, oldest first."""
        stmt = select(identities_table).order_by(identities_table.c.created_at.asc())
        result = await self.session.execute(stmt)
        return [row_to_identity(dict(row)) for row in result.mappings().all()]

    async def insert(self, identity: Identity) -> Identity:
        """Insert a new identity."""
        stmt = identities_table.insert().values(**identity_to_dict(identity))
        await self._execute_write(stmt)
        return identity

    async def update(self, identity: Identity) -> Identity:
        """Overwrite an existing identity."""
        values = identity_to_dict(identity)
        values.pop("id")
        values.pop("created_at")
        values["updated_at"] = utc_now()
        stmt = (
            identities_table.update()
            .where(identities_table.c.id == identity.id)
            .values(**values)
        )
        await self._execute_write(stmt)
        return identity.model_copy(update={"updated_at": values["updated_at"]})

    async def fill_missing(
        self,
        identity_id: IdentityId,
        gaps: dict[str, Any],
        overrides: dict[str, Any],
    ) -> Optional[Identity]:
        """Fill null columns with COALESCE and apply overrides in one UPDATE."""
        values: dict[str, Any] = {
            key: func.coalesce(identities_table.c[key], value)
            for key, value in identity_fields_to_columns(gaps).items()
            if value is not None
        }
        values.update(identity_fields_to_columns(overrides))
        values["updated_at"] = utc_now()

        stmt = (
            identities_table.update()
            .where(identities_table.c.id == identity_id)
            .values(**values)
            .returning(*identities_table.c)
        )
        result = await self._execute_write(stmt)
        row = result.mappings().first()
        return row_to_identity(dict(row)) if row else None

    async def delete(self, identity_id: IdentityId) -> None:
        """Delete an identity."""
        stmt = delete(identities_table).where(identities_table.c.id == identity_id)
        await self.session.execute(stmt)
        await self.session.flush()

    async def count_by_account_type(self) -> dict[AccountType, int]:
        """Count identities per account type."""
        stmt = select(
            identities_table.c.account_type, func.count().label("count")
        ).group_by(identities_table.c.account_type)
        result = await self.session.execute(stmt)
        return {
            AccountType(row["account_type"]): row["count"]
            for row in result.mappings().all()
        }
