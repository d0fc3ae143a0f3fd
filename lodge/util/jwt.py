"""JWT token utilities."""

from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from lodge.config import AuthSettings


class TokenPayload(BaseModel):
    """JWT token payload."""

    identity_id: str
    email: str | None = None
    phone: str | None = None
    role: str
    iat: datetime
    exp: datetime


class JWTError(Exception):
    """JWT-related error."""

    pass


def create_token(
    identity_id: str,
    email: str | None,
    phone: str | None,
    role: str,
    settings: AuthSettings,
    issued_at: datetime | None = None,
) -> str:
    """Create a signed session token.

    Args:
        identity_id: Identity ID (also used as the subject)
        email: Identity email, if any
        phone: Identity phone in E.164 form, if any
        role: Identity role
        settings: Authentication settings
        issued_at: Issue time, defaults to now

    Returns:
        Encoded JWT token
    """
    issued_at = issued_at or datetime.now(timezone.utc)
    expiry = issued_at + timedelta(days=settings.jwt_expiry_days)

    payload = {
        "sub": identity_id,
        "identity_id": identity_id,
        "email": email,
        "phone": phone,
        "role": role,
        "iat": issued_at,
        "exp": expiry,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: AuthSettings) -> TokenPayload:
    """Verify and decode a JWT token.

    Args:
        token: JWT token to verify
        settings: Authentication settings

    Returns:
        Token payload if valid

    Raises:
        JWTError: If token is invalid, expired, or minted for another audience
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "sub"]},
            # Tokens issued right after a password change may carry the next second
            leeway=timedelta(seconds=1),
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise JWTError("Token has expired")
    except jwt.InvalidTokenError:
        raise JWTError("Invalid token")
