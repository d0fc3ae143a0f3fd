"""Dependency injection containers."""

from dishka import AsyncContainer, Provider, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from lodge.util.di import PROVIDERS, get_provider


def _production_providers() -> list[Provider]:
    return [get_provider(base, use_mock=False)() for base in PROVIDERS]


def create_container() -> AsyncContainer:
    """Build the API container with production implementations.

    Settings are loaded from the environment when first requested.
    """
    return make_async_container(*_production_providers(), FastapiProvider())


def create_script_container() -> AsyncContainer:
    """Build the container for command-line scripts (no request objects)."""
    return make_async_container(*_production_providers())


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach the container to the app so routes can use ``FromDishka``."""
    setup_dishka(container, app)
