"""Google OAuth 2.0 client implementation.

Implements the authorization code flow with PKCE against Google's OpenID
Connect endpoints.
"""

import hashlib
import secrets
import time
from base64 import urlsafe_b64encode
from typing import Callable
from urllib.parse import urlencode

import httpx
import logfire

from lodge.adapter.error import OAuthError
from lodge.domain.service.auth_service import OAuthClient
from lodge.domain.value.types import AuthProvider, OAuthProviderInfo


class GoogleOAuthClient(OAuthClient):
    """Base class for Google OAuth clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealGoogleOAuthClient(GoogleOAuthClient):
    """Google OAuth 2.0 client with PKCE support."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        pkce_ttl_seconds: int = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize Google OAuth client.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            redirect_uri: Callback URL registered with Google
            pkce_ttl_seconds: How long an unanswered login stays completable
            clock: Monotonic time source
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

        self.authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
        self.token_url = "https://oauth2.googleapis.com/token"
        self.user_info_url = "https://openidconnect.googleapis.com/v1/userinfo"

        self.pkce_ttl_seconds = pkce_ttl_seconds
        self._clock = clock

        # state -> (verifier, issued at), process-local
        self._pkce_verifiers: dict[str, tuple[str, float]] = {}

    def _generate_pkce_pair(self) -> tuple[str, str]:
        """Generate PKCE code verifier and challenge.

        Returns:
            Tuple of (verifier, challenge)
        """
        code_verifier = urlsafe_b64encode(secrets.token_bytes(32)).decode("utf-8")
        code_verifier = code_verifier.rstrip("=")

        challenge_bytes = hashlib.sha256(code_verifier.encode("utf-8")).digest()
        code_challenge = urlsafe_b64encode(challenge_bytes).decode("utf-8")
        code_challenge = code_challenge.rstrip("=")

        return code_verifier, code_challenge

    def _drop_abandoned(self) -> None:
        cutoff = self._clock() - self.pkce_ttl_seconds
        stale = [s for s, (_, issued) in self._pkce_verifiers.items() if issued < cutoff]
        for state in stale:
            del self._pkce_verifiers[state]

    async def initiate_authorization(self, state: str) -> str:
        """Initiate Google OAuth authorization flow.

        Args:
            state: State parameter for CSRF protection

        Returns:
            Authorization URL to redirect user to
        """
        self._drop_abandoned()
        code_verifier, code_challenge = self._generate_pkce_pair()
        self._pkce_verifiers[state] = (code_verifier, self._clock())

        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": "openid email profile",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "prompt": "select_account",
        }

        logfire.info(
            "Google OAuth authorization initiated",
            redirect_uri=self.redirect_uri,
        )

        return f"{self.authorize_url}?{urlencode(params)}"

    async def complete_authorization(self, code: str, state: str) -> OAuthProviderInfo:
        """Complete Google OAuth authorization flow.

        Args:
            code: Authorization code from Google callback
            state: State parameter for verification

        Returns:
            User information from Google

        Raises:
            OAuthError: If OAuth flow fails
        """
        self._drop_abandoned()
        entry = self._pkce_verifiers.pop(state, None)
        if not entry:
            raise OAuthError("Invalid state or PKCE verifier not found")
        code_verifier, _ = entry

        access_token = await self._exchange_code_for_token(code, code_verifier)
        user_info = await self._get_user_info(access_token)

        logfire.info("Google OAuth completed", user_id=user_info["sub"])

        return OAuthProviderInfo(
            provider=AuthProvider.GOOGLE,
            provider_user_id=user_info["sub"],
            email=user_info.get("email"),
            display_name=user_info.get("name"),
            avatar_url=user_info.get("picture"),
            verified=bool(user_info.get("email_verified", False)),
        )

    async def _exchange_code_for_token(self, code: str, code_verifier: str) -> str:
        """Exchange authorization code for access token.

        Raises:
            OAuthError: If token exchange fails
        """
        data = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "code_verifier": code_verifier,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=30.0,
                )

                if response.status_code != 200:
                    logfire.error(
                        "Google token exchange failed",
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise OAuthError(f"Token exchange failed: {response.status_code}")

                return response.json()["access_token"]

        except httpx.HTTPError as e:
            logfire.error("Google token exchange HTTP error", error=str(e))
            raise OAuthError(f"HTTP error during token exchange: {e}")

    async def _get_user_info(self, access_token: str) -> dict:
        """Get user information from Google's userinfo endpoint.

        Raises:
            OAuthError: If API request fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.user_info_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=30.0,
                )

                if response.status_code != 200:
                    logfire.error(
                        "Google user info request failed",
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise OAuthError(f"User info request failed: {response.status_code}")

                return response.json()

        except httpx.HTTPError as e:
            logfire.error("Google user info HTTP error", error=str(e))
            raise OAuthError(f"HTTP error fetching user info: {e}")


class MockGoogleOAuthClient(GoogleOAuthClient):
    """Mock Google OAuth client for testing.

    Returns ``profile`` without making real API calls.
    """

    def __init__(self, profile: OAuthProviderInfo | None = None):
        self.profile = profile or OAuthProviderInfo(
            provider=AuthProvider.GOOGLE,
            provider_user_id="google-mock-123",
            email="mock.user@gmail.com",
            display_name="Mock Google User",
            avatar_url="https://example.com/avatar.jpg",
            verified=True,
        )

    async def initiate_authorization(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}&mock=true"

    async def complete_authorization(self, code: str, state: str) -> OAuthProviderInfo:
        return self.profile
