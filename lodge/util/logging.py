"""Stdlib logging setup for routes and scripts.

Services and adapters log through logfire directly; this covers the
``logging`` calls in routes, scripts and third-party libraries.
"""

import logging
import sys

import logfire

from lodge.config import Settings

# Chatty client libraries; their failures surface through our own events
QUIET_LOGGERS = ("httpx", "httpcore", "twilio.http_client", "sqlalchemy.engine")


def setup_logging(settings: Settings) -> None:
    """Configure the root logger.

    Records go to stdout and are also forwarded to Logfire, so route-level
    messages land next to the spans of the request that produced them.

    Args:
        settings: Application settings
    """
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout), logfire.LogfireLoggingHandler()],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("lodge").setLevel(level)

    logging.getLogger(__name__).info(
        f"Logging configured: environment={settings.environment}, "
        f"level={logging.getLevelName(level)}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a script or route module."""
    return logging.getLogger(name)


def mask_phone(phone: str | None) -> str | None:
    """Mask a phone number for logs, keeping only the last four digits."""
    if not phone:
        return phone
    return f"***{phone[-4:]}"
