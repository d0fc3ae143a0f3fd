"""Shared pieces of the identity domain models."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


class DomainModel(BaseModel):
    """Base class for identity entities.

    Entities are frozen; every change goes through ``model_copy`` or a
    repository write that returns the stored state.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
