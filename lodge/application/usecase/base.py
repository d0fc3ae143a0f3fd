"""Base use case."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

RequestT = TypeVar("RequestT", bound=BaseModel)
ResponseT = TypeVar("ResponseT", bound=BaseModel)


class BaseUseCase(ABC, Generic[RequestT, ResponseT]):
    """One user-facing identity operation.

    Takes a pydantic request, coordinates the domain services and returns a
    pydantic response. Domain errors propagate to the caller unchanged.
    """

    @abstractmethod
    async def execute(self, request: RequestT) -> ResponseT:
        pass
