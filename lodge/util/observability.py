"""Logfire setup for the identity service.

Services and adapters emit spans and events directly:

    with logfire.span("verification_service.send_code", phone=mask_phone(phone)):
        logfire.info("Code sent", provider=tier.value)
"""

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from lodge.config import Settings

# Attribute names whose values never leave the process unredacted
SCRUBBED_ATTRIBUTES = ["password", "password_hash", "code", "digest", "verification_code"]

AUTH_CHANNELS = {
    "/auth/code": "one-time-code",
    "/auth/register": "password",
    "/auth/login": "password",
    "/auth/password": "password",
    "/auth/social": "social",
    "/auth/callback": "social",
    "/auth/phone": "one-time-code",
}


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire once per process.

    Events go to the Logfire cloud only when a token is configured, unless
    ``OBSERVABILITY__SEND_TO_LOGFIRE`` forces the choice.

    Args:
        settings: Application settings
    """
    observability = settings.observability
    send_to_logfire = observability.send_to_logfire
    if send_to_logfire is None:
        send_to_logfire = bool(observability.logfire_token)

    logfire.configure(
        service_name="lodge-identity",
        service_version="0.1.0",
        environment=settings.environment,
        token=observability.logfire_token or None,
        send_to_logfire=send_to_logfire,
        scrubbing=logfire.ScrubbingOptions(extra_patterns=SCRUBBED_ATTRIBUTES),
        console=logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    )
    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
    )


def auth_channel(path: str) -> str | None:
    """Name the authentication channel a request path belongs to."""
    for prefix, channel in AUTH_CHANNELS.items():
        if path.startswith(prefix):
            return channel
    return None


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request except health checks.

    Headers are not captured because they carry the session cookie.
    """

    def _request_attributes(request, attributes):
        channel = auth_channel(request.url.path)
        if channel:
            return {**attributes, "auth_channel": channel}
        return attributes

    logfire.instrument_fastapi(
        app,
        capture_headers=False,
        excluded_urls="/health",
        request_attributes_mapper=_request_attributes,
    )


def instrument_sqlalchemy(engine: AsyncEngine) -> None:
    """Trace identity and verification-attempt queries."""
    logfire.instrument_sqlalchemy(engine=engine.sync_engine, enable_commenter=True)


def instrument_httpx() -> None:
    """Trace outbound provider calls (Fast2SMS, Google)."""
    logfire.instrument_httpx()
