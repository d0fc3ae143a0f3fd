"""Social login domain service."""

from abc import ABC, abstractmethod

import logfire

from lodge.domain.error import ValidationError
from lodge.domain.value.types import AuthProvider, OAuthProviderInfo

from .base import Service


class OAuthClient(ABC):
    """Authorization-code client for one social provider."""

    @abstractmethod
    async def initiate_authorization(self, state: str) -> str:
        """Build the provider URL the browser is redirected to.

        Args:
            state: Opaque value echoed back on the callback

        Returns:
            Authorization URL
        """

    @abstractmethod
    async def complete_authorization(self, code: str, state: str) -> OAuthProviderInfo:
        """Exchange the callback code for the provider's view of the person.

        Raises:
            OAuthError: If the exchange or profile fetch fails
        """


class AuthService(Service):
    """Routes social sign-in to the client of the chosen provider."""

    def __init__(self, oauth_clients: dict[AuthProvider, OAuthClient]) -> None:
        """Initialize auth service.

        Args:
            oauth_clients: OAuth client per supported provider
        """
        self.oauth_clients = oauth_clients

    def _client(self, provider: AuthProvider) -> OAuthClient:
        client = self.oauth_clients.get(provider)
        if client is None:
            logfire.warn("Social login requested for unconfigured provider", provider=provider.value)
            raise ValidationError(f"Sign-in with {provider.value} is not available")
        return client

    async def initiate_login(self, provider: AuthProvider, state: str) -> str:
        """Start a social login and return the provider URL.

        Raises:
            ValidationError: If the provider is not configured
        """
        return await self._client(provider).initiate_authorization(state)

    async def complete_login(
        self, provider: AuthProvider, code: str, state: str
    ) -> OAuthProviderInfo:
        """Finish a social login from its callback.

        Raises:
            ValidationError: If the provider is not configured
            OAuthError: If the provider exchange fails
        """
        return await self._client(provider).complete_authorization(code, state)
