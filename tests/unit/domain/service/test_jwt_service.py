"""Unit tests for JWTService."""

from datetime import datetime, timedelta, timezone

import pytest

from lodge.config import AuthSettings
from lodge.domain.model.common import utc_now
from lodge.domain.service import JWTService
from lodge.util.jwt import JWTError, TokenPayload
from tests.conftest import make_identity


class TestIssueAndVerify:
    """Tests for issuing and verifying session tokens."""

    def test_token_carries_identity_claims(self):
        # Arrange
        service = JWTService(AuthSettings())
        identity = make_identity(email="asha@example.com", phone="+919876543210")

        # Act
        payload = service.verify_token(service.issue_token(identity))

        # Assert
        assert payload.identity_id == str(identity.id)
        assert payload.email == "asha@example.com"
        assert payload.phone == "+919876543210"
        assert payload.role == "user"

    def test_tampered_token_is_rejected(self):
        service = JWTService(AuthSettings())
        token = service.issue_token(make_identity(phone="+919876543210"))

        with pytest.raises(JWTError):
            service.verify_token(token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1])

    def test_token_signed_with_other_secret_is_rejected(self):
        issuer = JWTService(AuthSettings(jwt_secret="another-secret"))
        service = JWTService(AuthSettings())
        token = issuer.issue_token(make_identity(phone="+919876543210"))

        with pytest.raises(JWTError):
            service.verify_token(token)

    def test_token_for_other_audience_is_rejected(self):
        issuer = JWTService(AuthSettings(jwt_audience="someone-else"))
        service = JWTService(AuthSettings())
        token = issuer.issue_token(make_identity(phone="+919876543210"))

        with pytest.raises(JWTError):
            service.verify_token(token)

    def test_expired_token_is_rejected(self):
        service = JWTService(AuthSettings(jwt_expiry_days=-1))
        token = service.issue_token(make_identity(phone="+919876543210"))

        with pytest.raises(JWTError, match="expired"):
            service.verify_token(token)


class TestEnsureFresh:
    """Tests for JWTService.ensure_fresh()."""

    def test_token_without_password_change_is_fresh(self):
        service = JWTService(AuthSettings())
        identity = make_identity(phone="+919876543210")
        payload = service.verify_token(service.issue_token(identity))

        service.ensure_fresh(payload, identity)

    def test_token_issued_before_password_change_is_stale(self):
        """Changing the password invalidates earlier sessions."""
        # Arrange
        service = JWTService(AuthSettings())
        identity = make_identity(email="asha@example.com", password_hash="hash")
        payload = service.verify_token(service.issue_token(identity))
        changed = identity.model_copy(
            update={"password_changed_at": utc_now() + timedelta(seconds=5)}
        )

        # Act & Assert
        with pytest.raises(JWTError):
            service.ensure_fresh(payload, changed)

    def test_token_issued_after_password_change_is_fresh(self):
        service = JWTService(AuthSettings())
        identity = make_identity(
            email="asha@example.com",
            password_hash="hash",
            password_changed_at=utc_now() - timedelta(minutes=1),
        )
        payload = service.verify_token(service.issue_token(identity))

        service.ensure_fresh(payload, identity)

    def test_token_from_earlier_in_the_same_second_is_stale(self):
        """A whole-second ``iat`` cannot outrun a change later in that second."""
        # Arrange
        service = JWTService(AuthSettings())
        changed_at = datetime(2026, 3, 1, 12, 0, 0, 700000, tzinfo=timezone.utc)
        identity = make_identity(
            email="asha@example.com",
            password_hash="hash",
            password_changed_at=changed_at,
        )
        payload = TokenPayload(
            identity_id=str(identity.id),
            email="asha@example.com",
            role="user",
            iat=changed_at.replace(microsecond=0),
            exp=changed_at + timedelta(days=1),
        )

        # Act & Assert
        with pytest.raises(JWTError):
            service.ensure_fresh(payload, identity)

    def test_token_issued_right_after_password_change_is_fresh(self):
        """The session handed out with a password change stays valid."""
        # Arrange
        service = JWTService(AuthSettings())
        identity = make_identity(
            email="asha@example.com",
            password_hash="hash",
            password_changed_at=utc_now(),
        )

        # Act
        payload = service.verify_token(service.issue_token(identity))

        # Assert
        service.ensure_fresh(payload, identity)
        assert payload.iat >= identity.password_changed_at
