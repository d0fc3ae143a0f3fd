#!/usr/bin/env python3
"""Fold duplicate identities, purge stale verification attempts and report counts.

Usage:
    python scripts/reconcile_accounts.py --dry-run
    python scripts/reconcile_accounts.py
"""

import argparse
import asyncio
import sys

import logfire

from lodge.application.usecase.account import (
    GetAccountStatsUseCase,
    PurgeVerificationAttemptsUseCase,
    ReconcileDuplicatesUseCase,
)
from lodge.application.usecase.account.get_account_stats import (
    GetAccountStatsRequest,
)
from lodge.application.usecase.account.purge_verification_attempts import (
    PurgeVerificationAttemptsRequest,
)
from lodge.application.usecase.account.reconcile_duplicates import (
    ReconcileDuplicatesRequest,
)
from lodge.config import Settings
from lodge.util.di.container import create_script_container
from lodge.util.logging import get_logger, setup_logging
from lodge.util.observability import configure_logfire

logger = get_logger(__name__)


async def run(dry_run: bool) -> None:
    container = create_script_container()
    try:
        # Reconciliation commits with the request session
        async with container() as request_container:
            reconcile = await request_container.get(ReconcileDuplicatesUseCase)
            result = await reconcile.execute(ReconcileDuplicatesRequest(dry_run=dry_run))

        logger.info(
            f"Scanned {result.scanned} identities, "
            f"{result.duplicate_groups} duplicate groups, "
            f"merged {len(result.merged)}, skipped {len(result.skipped)}, "
            f"canonicalized {result.phones_canonicalized} phones"
            + (" (dry run)" if dry_run else "")
        )
        for identity_id in result.skipped:
            logger.warning(f"Skipped unmergeable identity {identity_id}")

        if not dry_run:
            async with container() as request_container:
                purge = await request_container.get(PurgeVerificationAttemptsUseCase)
                purged = await purge.execute(PurgeVerificationAttemptsRequest())
            logger.info(f"Purged {purged.purged} stale verification attempts")

        async with container() as request_container:
            stats_use_case = await request_container.get(GetAccountStatsUseCase)
            stats = await stats_use_case.execute(GetAccountStatsRequest())

        logger.info(f"Total identities: {stats.total}")
        for account_type, count in sorted(
            stats.by_account_type.items(), key=lambda item: item[0].value
        ):
            logger.info(f"  {account_type.value}: {count}")
    finally:
        await container.close()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report duplicate groups without merging anything",
    )
    args = parser.parse_args()

    settings = Settings()
    configure_logfire(settings)
    setup_logging(settings)

    try:
        asyncio.run(run(args.dry_run))
        return 0
    except Exception as e:
        logfire.error(
            "Account reconciliation failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
