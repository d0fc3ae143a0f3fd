"""Unit tests for the Google OAuth client."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from lodge.adapter.error import OAuthError
from lodge.adapter.google import RealGoogleOAuthClient
from lodge.domain.value import AuthProvider


@pytest.fixture
def google_transport(monkeypatch):
    """Serve Google's token and userinfo endpoints from a handler."""
    state = {"token_status": 200, "requests": []}
    real_client = httpx.AsyncClient

    def handle(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if request.url.host == "oauth2.googleapis.com":
            if state["token_status"] != 200:
                return httpx.Response(state["token_status"], text="invalid_grant")
            return httpx.Response(200, json={"access_token": "access-1"})
        return httpx.Response(
            200,
            json={
                "sub": "google-42",
                "email": "asha@gmail.com",
                "email_verified": True,
                "name": "Asha",
                "picture": "https://example.com/a.png",
            },
        )

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: real_client(transport=httpx.MockTransport(handle)),
    )
    return state


def build_client() -> RealGoogleOAuthClient:
    return RealGoogleOAuthClient(
        client_id="client-1",
        client_secret="secret-1",
        redirect_uri="http://localhost:8000/auth/callback/google",
    )


class TestRealGoogleOAuthClient:
    """Tests for RealGoogleOAuthClient."""

    @pytest.mark.asyncio
    async def test_authorization_url_uses_pkce(self):
        client = build_client()

        url = await client.initiate_authorization("state-1")

        query = parse_qs(urlparse(url).query)
        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert query["state"] == ["state-1"]
        assert query["code_challenge_method"] == ["S256"]
        assert query["scope"] == ["openid email profile"]

    @pytest.mark.asyncio
    async def test_completes_login_with_profile(self, google_transport):
        # Arrange
        client = build_client()
        await client.initiate_authorization("state-1")

        # Act
        info = await client.complete_authorization("code-1", "state-1")

        # Assert
        assert info.provider == AuthProvider.GOOGLE
        assert info.provider_user_id == "google-42"
        assert info.email == "asha@gmail.com"
        assert info.verified
        token_request = google_transport["requests"][0]
        assert b"code_verifier=" in token_request.content
        assert google_transport["requests"][1].headers["Authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_unknown_state_is_rejected(self):
        client = build_client()

        with pytest.raises(OAuthError):
            await client.complete_authorization("code-1", "never-issued")

    @pytest.mark.asyncio
    async def test_state_is_single_use(self, google_transport):
        client = build_client()
        await client.initiate_authorization("state-1")
        await client.complete_authorization("code-1", "state-1")

        with pytest.raises(OAuthError):
            await client.complete_authorization("code-1", "state-1")

    @pytest.mark.asyncio
    async def test_failed_token_exchange_raises(self, google_transport):
        google_transport["token_status"] = 400
        client = build_client()
        await client.initiate_authorization("state-1")

        with pytest.raises(OAuthError):
            await client.complete_authorization("bad-code", "state-1")


class TestPkceVerifierLifetime:
    """Abandoned logins do not accumulate."""

    @staticmethod
    def build_clocked_client(now: list[float]) -> RealGoogleOAuthClient:
        return RealGoogleOAuthClient(
            client_id="client-1",
            client_secret="secret-1",
            redirect_uri="http://localhost:8000/auth/callback/google",
            pkce_ttl_seconds=600,
            clock=lambda: now[0],
        )

    @pytest.mark.asyncio
    async def test_abandoned_verifiers_are_dropped(self):
        # Arrange
        now = [1000.0]
        client = self.build_clocked_client(now)
        for i in range(5):
            await client.initiate_authorization(f"abandoned-{i}")

        # Act
        now[0] += 601
        await client.initiate_authorization("fresh")

        # Assert
        assert list(client._pkce_verifiers) == ["fresh"]

    @pytest.mark.asyncio
    async def test_expired_state_cannot_complete(self, google_transport):
        now = [1000.0]
        client = self.build_clocked_client(now)
        await client.initiate_authorization("state-1")
        now[0] += 601

        with pytest.raises(OAuthError):
            await client.complete_authorization("code-1", "state-1")
        assert google_transport["requests"] == []
