#!/usr/bin/env python3
"""Apply the identity schema migrations with Logfire error tracking."""

import argparse
import sys

import logfire
from alembic import command
from alembic.config import Config

from lodge.config import Settings
from lodge.util.observability import configure_logfire


def main() -> int:
    """Upgrade the database to the requested revision."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "revision", nargs="?", default="head", help="Target revision (default: head)"
    )
    args = parser.parse_args()

    settings = Settings()
    configure_logfire(settings)

    try:
        logfire.info(
            "Starting identity schema migrations",
            environment=settings.environment,
            revision=args.revision,
        )
        command.upgrade(Config("alembic.ini"), args.revision)
        logfire.info("Identity schema is up to date", revision=args.revision)
        return 0

    except Exception as e:
        logfire.error(
            "Identity schema migration failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        # The app must not start against a half-migrated schema
        raise


if __name__ == "__main__":
    sys.exit(main())
