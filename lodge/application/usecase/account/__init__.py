"""Account maintenance use cases."""

from .get_account_stats import GetAccountStatsUseCase
from .purge_verification_attempts import PurgeVerificationAttemptsUseCase
from .reconcile_duplicates import ReconcileDuplicatesUseCase

__all__ = [
    "GetAccountStatsUseCase",
    "PurgeVerificationAttemptsUseCase",
    "ReconcileDuplicatesUseCase",
]
