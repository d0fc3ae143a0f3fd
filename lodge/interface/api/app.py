"""FastAPI application for the Lodge identity service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logfire

from lodge.config import Settings
from lodge.interface.api.errors import setup_error_handlers
from lodge.interface.api.routes import auth, health
from lodge.util.di.container import create_container, setup_di
from lodge.util.observability import instrument_fastapi, instrument_httpx

LOCAL_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Disposes the database engine and provider clients
    await app.state.dishka_container.close()
    logfire.info("Identity API stopped")


def _allowed_origins(settings: Settings) -> list[str]:
    origins = [settings.api.frontend_url]
    if settings.environment in ("test", "development"):
        origins += [o for o in LOCAL_ORIGINS if o not in origins]
    return origins


def create_app() -> FastAPI:
    """Create the identity API.

    Logfire must be configured first; ``scripts/start_app.py`` does so before
    handing this factory to uvicorn.
    """
    settings = Settings()
    instrument_httpx()

    app_instance = FastAPI(
        title="Lodge Identity API",
        description="Unified identity and account linking for the Lodge room-rental marketplace",
        version="0.1.0",
        lifespan=lifespan,
    )
    instrument_fastapi(app_instance)

    # Session cookies cross from the front-end origin, so credentials are allowed
    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Retry-After"],
        max_age=600,
    )

    setup_di(app_instance, create_container())
    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)
    setup_error_handlers(app_instance)

    return app_instance
