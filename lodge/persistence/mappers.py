"""Mappers for converting between database rows and domain models.

Domain models are immutable Pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM.
"""

from typing import Any, Dict
from uuid import UUID

from lodge.domain.model import (
    Identity,
    LocallyHashed,
    RemoteValidated,
    VerificationAttempt,
)
from lodge.domain.value import (
    AccountType,
    DeliveryTier,
    Handle,
    IdentityId,
    RegistrationMethod,
    Role,
    VerificationAttemptId,
)


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_identity(row: Dict[str, Any]) -> Identity:
    """Convert database row to Identity domain model.

    Args:
        row: Database row as dict

    Returns:
        Identity domain model
    """
    return Identity(
        id=IdentityId(_uuid(row["id"])),
        handle=Handle(row["handle"]),
        name=row.get("name"),
        email=row.get("email"),
        phone=row.get("phone"),
        password_hash=row.get("password_hash"),
        role=Role(row["role"]),
        registration_method=RegistrationMethod(row["registration_method"]),
        account_type=AccountType(row["account_type"]),
        phone_verified=row["phone_verified"],
        email_verified=row["email_verified"],
        can_link_email=row["can_link_email"],
        profile_completed=row["profile_completed"],
        avatar_url=row.get("avatar_url"),
        college=row.get("college"),
        course=row.get("course"),
        year=row.get("year"),
        bio=row.get("bio"),
        google_id=row.get("google_id"),
        failed_login_attempts=row.get("failed_login_attempts", 0),
        locked_until=row.get("locked_until"),
        password_changed_at=row.get("password_changed_at"),
        is_active=row.get("is_active", True),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_login=row.get("last_login"),
    )


def identity_to_dict(identity: Identity) -> Dict[str, Any]:
    """Convert Identity domain model to database dict.

    Args:
        identity: Identity domain model

    Returns:
        Dict suitable for database insertion/update
    """
    data = identity.model_dump(mode="python")
    data["handle"] = identity.handle.root
    data["role"] = identity.role.value
    data["registration_method"] = identity.registration_method.value
    data["account_type"] = identity.account_type.value
    return data


def identity_fields_to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a partial field mapping (enums, handles) to column values."""
    columns = {}
    for key, value in fields.items():
        if isinstance(value, Handle):
            value = value.root
        elif isinstance(value, (Role, RegistrationMethod, AccountType)):
            value = value.value
        columns[key] = value
    return columns


def row_to_verification_attempt(row: Dict[str, Any]) -> VerificationAttempt:
    """Convert database row to VerificationAttempt domain model."""
    if row["code_kind"] == "remote":
        code: RemoteValidated | LocallyHashed = RemoteValidated()
    else:
        code = LocallyHashed(digest=row["code_digest"])

    return VerificationAttempt(
        id=VerificationAttemptId(_uuid(row["id"])),
        phone=row["phone"],
        code=code,
        provider=DeliveryTier(row["provider"]),
        provider_reference=row.get("provider_reference"),
        attempts=row["attempts"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        consumed_at=row.get("consumed_at"),
    )


def verification_attempt_to_dict(attempt: VerificationAttempt) -> Dict[str, Any]:
    """Convert VerificationAttempt domain model to database dict."""
    return {
        "id": attempt.id,
        "phone": attempt.phone,
        "code_kind": attempt.code.kind,
        "code_digest": attempt.code.digest
        if isinstance(attempt.code, LocallyHashed)
        else None,
        "provider": attempt.provider.value,
        "provider_reference": attempt.provider_reference,
        "attempts": attempt.attempts,
        "created_at": attempt.created_at,
        "expires_at": attempt.expires_at,
        "consumed_at": attempt.consumed_at,
    }
