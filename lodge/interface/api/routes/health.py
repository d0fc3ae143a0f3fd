"""Health check route."""

from datetime import datetime, timezone

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from lodge.config import Settings

router = APIRouter(tags=["health"], route_class=DishkaRoute)


class HealthResponse(BaseModel):
    """Liveness report of the identity API."""

    status: str
    timestamp: datetime
    version: str
    git_sha: str
    environment: str
    local_code_fallback: bool  # True when the well-known code can be issued


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: FromDishka[Settings]) -> HealthResponse:
    """Report liveness.

    ``local_code_fallback`` is surfaced so a production deployment that still
    accepts the well-known code is easy to spot.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version="0.1.0",
        git_sha=settings.git_sha,
        environment=settings.environment,
        local_code_fallback=bool(settings.verification.allow_local_fallback),
    )
