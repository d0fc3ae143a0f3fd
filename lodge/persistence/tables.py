"""SQLAlchemy table definitions for Lodge identities.

These table definitions match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

# ============================================================================
# IDENTITIES TABLE
# ============================================================================
identities_table = Table(
    "identities",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("handle", String(64), nullable=False),
    Column("name", String(255), nullable=True),
    Column("email", String(254), nullable=True),  # lowercased
    Column("phone", String(20), nullable=True),  # E.164
    Column("password_hash", Text, nullable=True),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("registration_method", String(20), nullable=False),
    Column("account_type", String(20), nullable=False),
    Column("phone_verified", Boolean, nullable=False, server_default="false"),
    Column("email_verified", Boolean, nullable=False, server_default="false"),
    Column("can_link_email", Boolean, nullable=False, server_default="true"),
    Column("profile_completed", Boolean, nullable=False, server_default="false"),
    Column("avatar_url", Text, nullable=True),
    Column("college", String(255), nullable=True),
    Column("course", String(255), nullable=True),
    Column("year", String(20), nullable=True),
    Column("bio", Text, nullable=True),
    Column("google_id", String(255), nullable=True),
    Column("failed_login_attempts", Integer, nullable=False, server_default="0"),
    Column("locked_until", TIMESTAMP(timezone=True), nullable=True),
    Column("password_changed_at", TIMESTAMP(timezone=True), nullable=True),
    Column("is_active", Boolean, nullable=False, server_default="true"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("last_login", TIMESTAMP(timezone=True), nullable=True),
    UniqueConstraint("email", name="uq_identities_email"),
    UniqueConstraint("phone", name="uq_identities_phone"),
    UniqueConstraint("handle", name="uq_identities_handle"),
    UniqueConstraint("google_id", name="uq_identities_google_id"),
    CheckConstraint(
        "email IS NOT NULL OR phone IS NOT NULL", name="ck_identities_contact"
    ),
)

Index("idx_identities_account_type", identities_table.c.account_type)

# ============================================================================
# VERIFICATION ATTEMPTS TABLE
# ============================================================================
verification_attempts_table = Table(
    "verification_attempts",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("phone", String(20), nullable=False),
    Column("code_kind", String(10), nullable=False),  # 'remote' or 'local'
    Column("code_digest", Text, nullable=True),
    Column("provider", String(20), nullable=False),
    Column("provider_reference", String(255), nullable=True),
    Column("attempts", Integer, nullable=False, server_default="0"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("expires_at", TIMESTAMP(timezone=True), nullable=False),
    Column("consumed_at", TIMESTAMP(timezone=True), nullable=True),
    CheckConstraint(
        "code_kind = 'remote' OR code_digest IS NOT NULL",
        name="ck_verification_attempts_digest",
    ),
)

Index(
    "idx_verification_attempts_phone_created",
    verification_attempts_table.c.phone,
    verification_attempts_table.c.created_at,
)
Index(
    "idx_verification_attempts_created_at", verification_attempts_table.c.created_at
)
