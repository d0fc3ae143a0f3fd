"""initial_identity_schema

Create the identity schema for Lodge:
- Identities (one row per person; email, phone and Google sign-in linked)
- Verification attempts (one-time codes sent by phone)

Revision ID: 3c1f7d2a9e40
Revises:
Create Date: 2026-10-19 10:12:44.318201

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f7d2a9e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "identities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("handle", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(254), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("registration_method", sa.String(20), nullable=False),
        sa.Column("account_type", sa.String(20), nullable=False),
        sa.Column(
            "phone_verified", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column(
            "email_verified", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column(
            "can_link_email", sa.Boolean(), nullable=False, server_default="true"
        ),
        sa.Column(
            "profile_completed", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("college", sa.String(255), nullable=True),
        sa.Column("course", sa.String(255), nullable=True),
        sa.Column("year", sa.String(20), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("google_id", sa.String(255), nullable=True),
        sa.Column(
            "failed_login_attempts", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("locked_until", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "password_changed_at", postgresql.TIMESTAMP(timezone=True), nullable=True
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("last_login", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint("email", name="uq_identities_email"),
        sa.UniqueConstraint("phone", name="uq_identities_phone"),
        sa.UniqueConstraint("handle", name="uq_identities_handle"),
        sa.UniqueConstraint("google_id", name="uq_identities_google_id"),
        sa.CheckConstraint(
            "email IS NOT NULL OR phone IS NOT NULL", name="ck_identities_contact"
        ),
    )
    op.create_index(
        "idx_identities_account_type", "identities", ["account_type"]
    )

    op.create_table(
        "verification_attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("code_kind", sa.String(10), nullable=False),
        sa.Column("code_digest", sa.Text(), nullable=True),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("provider_reference", sa.String(255), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("consumed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "code_kind = 'remote' OR code_digest IS NOT NULL",
            name="ck_verification_attempts_digest",
        ),
    )
    op.create_index(
        "idx_verification_attempts_phone_created",
        "verification_attempts",
        ["phone", "created_at"],
    )
    op.create_index(
        "idx_verification_attempts_created_at",
        "verification_attempts",
        ["created_at"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        "idx_verification_attempts_created_at", table_name="verification_attempts"
    )
    op.drop_index(
        "idx_verification_attempts_phone_created", table_name="verification_attempts"
    )
    op.drop_table("verification_attempts")
    op.drop_index("idx_identities_account_type", table_name="identities")
    op.drop_table("identities")
