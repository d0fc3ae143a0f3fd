"""Test configuration and fixtures."""

from datetime import datetime
from uuid import uuid4

from dishka import AsyncContainer
import pytest

from lodge.adapter.password import Argon2PasswordHasher
from lodge.application.usecase.auth import (
    SendVerificationCodeUseCase,
    VerifyCodeUseCase,
)
from lodge.application.usecase.auth.send_code import SendVerificationCodeRequest
from lodge.application.usecase.auth.verify_code import (
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from lodge.domain.model import Identity
from lodge.domain.model.common import utc_now
from lodge.domain.value import (
    AccountType,
    Handle,
    IdentityId,
    RegistrationMethod,
    Role,
)

STRONG_PASSWORD = "Str0ng!pass"
APPROVED_CODE = "246810"  # MockTwilioVerifyStrategy approves this code


def make_identity(
    *,
    email: str | None = None,
    phone: str | None = None,
    password_hash: str | None = None,
    account_type: AccountType = AccountType.CODE_ONLY,
    registration_method: RegistrationMethod = RegistrationMethod.ONE_TIME_CODE,
    handle: str | None = None,
    created_at: datetime | None = None,
    **fields,
) -> Identity:
    """Build an identity for tests.

    Defaults describe a code-only identity; pass fields to shape others.
    """
    identity_id = IdentityId(uuid4())
    created = created_at or utc_now()
    return Identity(
        id=identity_id,
        handle=Handle(handle or f"user-{identity_id.hex[:8]}"),
        email=email,
        phone=phone,
        password_hash=password_hash,
        role=fields.pop("role", Role.USER),
        registration_method=registration_method,
        account_type=account_type,
        created_at=created,
        updated_at=created,
        **fields,
    )


@pytest.fixture
def password_hasher() -> Argon2PasswordHasher:
    """Argon2 hasher with cheap parameters for fast tests."""
    return Argon2PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


async def sign_in_with_code(env: AsyncContainer, phone: str) -> VerifyCodeResponse:
    """Send a code to ``phone`` and sign in with it."""
    send = await env.get(SendVerificationCodeUseCase)
    verify = await env.get(VerifyCodeUseCase)
    await send.execute(SendVerificationCodeRequest(phone=phone))
    return await verify.execute(VerifyCodeRequest(phone=phone, code=APPROVED_CODE))
