"""Duplicate identity reconciliation.

Batch counterpart of the request-time linking: finds identities that share an
email or a phone number and folds them into one survivor.
"""

from dataclasses import dataclass, field
from datetime import datetime

import logfire

from lodge.domain.error import (
    DuplicateAccountConflictError,
    DuplicateKeyError,
    ValidationError,
)
from lodge.domain.model import Identity
from lodge.domain.repository import IdentityRepository
from lodge.domain.service.account_merge_service import AccountMergeService
from lodge.domain.service.base import Service
from lodge.domain.service.linking import analyze_linking
from lodge.domain.value import AccountType, IdentityId, normalize_phone
from lodge.domain.value.contact import DEFAULT_REGION


@dataclass
class ReconciliationReport:
    """Outcome of one reconciliation run."""

    scanned: int = 0
    duplicate_groups: int = 0
    merged: list[IdentityId] = field(default_factory=list)
    skipped: list[IdentityId] = field(default_factory=list)
    phones_canonicalized: int = 0


@dataclass(frozen=True)
class AccountStats:
    """Identity counts per account type."""

    by_account_type: dict[AccountType, int]

    @property
    def total(self) -> int:
        return sum(self.by_account_type.values())


def survivor_rank(identity: Identity) -> tuple[int, datetime]:
    """Sort key choosing which identity of a duplicate group survives.

    Unified or email+password accounts first, then any account with an
    email, then the rest; ties go to the oldest.
    """
    if identity.is_unified or (identity.email and identity.has_password):
        tier = 0
    elif identity.email:
        tier = 1
    else:
        tier = 2
    return tier, identity.created_at


class _DisjointSet:
    def __init__(self) -> None:
        self.parent: dict[IdentityId, IdentityId] = {}

    def find(self, item: IdentityId) -> IdentityId:
        self.parent.setdefault(item, item)
        while self.parent[item] != item:
            self.parent[item] = self.parent[self.parent[item]]
            item = self.parent[item]
        return item

    def union(self, a: IdentityId, b: IdentityId) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self.parent[root_b] = root_a


class ReconciliationService(Service):
    """Domain service that merges duplicate identities in bulk."""

    def __init__(
        self,
        identity_repository: IdentityRepository,
        account_merge_service: AccountMergeService,
        default_region: str = DEFAULT_REGION,
    ) -> None:
        """Initialize reconciliation service.

        Args:
            identity_repository: Identity repository
            account_merge_service: Executor for pairwise merges
            default_region: Region for phone numbers without a country code
        """
        self.identity_repository = identity_repository
        self.account_merge_service = account_merge_service
        self.default_region = default_region

    def _phone_key(self, phone: str) -> str:
        try:
            return normalize_phone(phone, self.default_region).canonical
        except ValidationError:
            return phone

    def find_duplicate_groups(self, identities: list[Identity]) -> list[list[Identity]]:
        """Group identities connected through a shared email or phone.

        Returns:
            Groups with more than one member, each ordered survivor first
        """
        by_id = {identity.id: identity for identity in identities}
        sets = _DisjointSet()
        seen: dict[str, IdentityId] = {}

        for identity in identities:
            sets.find(identity.id)
            keys = []
            if identity.email:
                keys.append(f"email:{identity.email.strip().lower()}")
            if identity.phone:
                keys.append(f"phone:{self._phone_key(identity.phone)}")
            for key in keys:
                if key in seen:
                    sets.union(seen[key], identity.id)
                else:
                    seen[key] = identity.id

        groups: dict[IdentityId, list[Identity]] = {}
        for identity_id, identity in by_id.items():
            groups.setdefault(sets.find(identity_id), []).append(identity)

        return [
            sorted(members, key=survivor_rank)
            for members in groups.values()
            if len(members) > 1
        ]

    async def reconcile(self, dry_run: bool = False) -> ReconciliationReport:
        """Merge every duplicate group into its survivor.

        Sources that are not linkable (e.g. a second password account) are
        left alone and reported as skipped.

        Args:
            dry_run: Report what would happen without writing

        Returns:
            Reconciliation report
        """
        with logfire.span("reconciliation_service.reconcile", dry_run=dry_run):
            identities = await self.identity_repository.find_all()
            report = ReconciliationReport(scanned=len(identities))

            for group in self.find_duplicate_groups(identities):
                report.duplicate_groups += 1
                survivor, sources = group[0], group[1:]
                for source in sources:
                    if dry_run:
                        analysis = analyze_linking(
                            source, survivor.email, survivor.phone
                        )
                        if analysis.can_link:
                            report.merged.append(source.id)
                        else:
                            report.skipped.append(source.id)
                        continue
                    try:
                        survivor = await self.account_merge_service.merge_identities(
                            source, survivor
                        )
                    except DuplicateAccountConflictError as e:
                        logfire.warn(
                            "Duplicate left unmerged",
                            source_id=str(source.id),
                            survivor_id=str(survivor.id),
                            reason=e.reason,
                        )
                        report.skipped.append(source.id)
                        continue
                    report.merged.append(source.id)

            if not dry_run:
                report.phones_canonicalized = await self._canonicalize_phones()

            logfire.info(
                "Reconciliation finished",
                scanned=report.scanned,
                duplicate_groups=report.duplicate_groups,
                merged=len(report.merged),
                skipped=len(report.skipped),
                phones_canonicalized=report.phones_canonicalized,
            )
            return report

    async def _canonicalize_phones(self) -> int:
        count = 0
        for identity in await self.identity_repository.find_all():
            if not identity.phone:
                continue
            canonical = self._phone_key(identity.phone)
            if canonical == identity.phone:
                continue
            try:
                await self.identity_repository.update(
                    identity.model_copy(update={"phone": canonical})
                )
            except DuplicateKeyError:
                logfire.warn(
                    "Phone left in legacy format, canonical form is taken",
                    identity_id=str(identity.id),
                )
                continue
            count += 1
        return count

    async def account_stats(self) -> AccountStats:
        """Count identities per account type."""
        counts = await self.identity_repository.count_by_account_type()
        return AccountStats(
            by_account_type={t: counts.get(t, 0) for t in AccountType}
        )
