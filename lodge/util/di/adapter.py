"""Adapter DI providers."""

from dishka import Scope, provide

from lodge.adapter.password import Argon2PasswordHasher
from lodge.domain.service import PasswordHasher
from lodge.util.di.base import ProviderBase


class ProdAdapterProvider(ProviderBase):
    """Stateless adapters shared by every request."""

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_password_hasher(self) -> PasswordHasher:
        """Provide the argon2id password hasher."""
        return Argon2PasswordHasher()
