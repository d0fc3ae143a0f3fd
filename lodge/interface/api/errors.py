"""Exception handlers mapping domain errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from lodge.adapter.error import OAuthError
from lodge.domain.error import (
    AccountLockedError,
    CodeDeliveryUnavailableError,
    DuplicateAccountConflictError,
    IntegrityFaultError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from lodge.util.jwt import JWTError

logger = logging.getLogger(__name__)


def _error(status_code: int, detail: str, **extra) -> JSONResponse:
    headers = extra.pop("headers", None)
    return JSONResponse(
        status_code=status_code, content={"detail": detail, **extra}, headers=headers
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register exception handlers for domain, adapter and token errors."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(InvalidOrExpiredCodeError)
    async def invalid_code_handler(
        _request: Request, exc: InvalidOrExpiredCodeError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        _request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(JWTError)
    async def jwt_error_handler(_request: Request, exc: JWTError) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, "Not authenticated")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, f"{exc.resource} not found")

    @app.exception_handler(DuplicateAccountConflictError)
    async def conflict_handler(
        _request: Request, exc: DuplicateAccountConflictError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), reason=exc.reason)

    @app.exception_handler(AccountLockedError)
    async def locked_handler(_request: Request, exc: AccountLockedError) -> JSONResponse:
        return _error(
            status.HTTP_423_LOCKED,
            str(exc),
            retry_after_seconds=exc.retry_after_seconds,
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(
        _request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            str(exc),
            retry_after_seconds=exc.retry_after_seconds,
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(CodeDeliveryUnavailableError)
    async def delivery_unavailable_handler(
        _request: Request, exc: CodeDeliveryUnavailableError
    ) -> JSONResponse:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(OAuthError)
    async def oauth_error_handler(_request: Request, exc: OAuthError) -> JSONResponse:
        logger.error(f"Social login failed: {exc}")
        return _error(status.HTTP_502_BAD_GATEWAY, "Social login failed")

    @app.exception_handler(IntegrityFaultError)
    async def integrity_fault_handler(
        request: Request, exc: IntegrityFaultError
    ) -> JSONResponse:
        logger.error(f"Identity integrity fault on {request.url.path}: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
