"""Reconciliation between the availability cache and the durable store.

The store is the source of truth; the cache is repaired to match it, never
the other way round. Integrity violations in stored records (reservations
above physical stock, negative counts) are reported, not repaired.

Failures are contained per record: a record that cannot be read, compared or
repaired becomes an issue in the report and the scan moves on, so one corrupt
record cannot abort a tenant-wide pass. Nothing here takes the facade's
mutation lock; reconciliation never blocks the write path.

Invoked on demand (admin API) or on a schedule owned by an external job
(`manage.py reconcile`).
"""

from collections.abc import Iterator
from datetime import UTC, datetime

import structlog

from stockledger.cache import (
    cache_key,
    get_cache,
    get_cache_ttl,
    product_id_from_key,
    tenant_key_pattern,
)
from stockledger.cache.port import AvailabilityCache
from stockledger.reconciliation.results import (
    CACHE_MISS,
    InventoryIssue,
    IssueType,
    ReconciliationResult,
    ReconciliationSummary,
    Severity,
)
from stockledger.stock.record import InventoryRecord
from stockledger.store import get_store
from stockledger.store.port import InventoryStore

logger = structlog.get_logger(__name__)


def _describe(exc: Exception) -> str:
    messages = getattr(exc, "messages", None)
    return str(messages) if messages else str(exc) or type(exc).__name__


def integrity_issues(record: InventoryRecord) -> list[InventoryIssue]:
    """Structural violations of the ledger invariants. Always CRITICAL."""
    issues = []
    if record.reserved_quantity > record.quantity:
        issues.append(
            InventoryIssue(
                product_id=record.product_id,
                issue_type=IssueType.INVALID_RESERVATION,
                description=f"Reserved ({record.reserved_quantity}) exceeds total ({record.quantity})",
                severity=Severity.CRITICAL,
            )
        )
    if record.quantity < 0:
        issues.append(
            InventoryIssue(
                product_id=record.product_id,
                issue_type=IssueType.NEGATIVE_QUANTITY,
                description=f"Total quantity is negative: {record.quantity}",
                severity=Severity.CRITICAL,
            )
        )
    if record.reserved_quantity < 0:
        issues.append(
            InventoryIssue(
                product_id=record.product_id,
                issue_type=IssueType.NEGATIVE_RESERVED,
                description=f"Reserved quantity is negative: {record.reserved_quantity}",
                severity=Severity.CRITICAL,
            )
        )
    return issues


def stock_level_issues(record: InventoryRecord) -> list[InventoryIssue]:
    """Low-stock and out-of-stock warnings for tracked records."""
    issues = []
    if record.is_low_stock:
        issues.append(
            InventoryIssue(
                product_id=record.product_id,
                issue_type=IssueType.LOW_STOCK,
                description=(
                    f"Available quantity ({record.available_quantity}) "
                    f"at or below threshold ({record.low_stock_threshold})"
                ),
                severity=Severity.WARNING,
            )
        )
    if record.is_out_of_stock:
        issues.append(
            InventoryIssue(
                product_id=record.product_id,
                issue_type=IssueType.OUT_OF_STOCK,
                description="Product is out of stock",
                severity=Severity.HIGH,
            )
        )
    return issues


class InventoryReconciliationService:
    def __init__(
        self,
        store: InventoryStore | None = None,
        cache: AvailabilityCache | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self.store = store if store is not None else get_store()
        self.cache = cache if cache is not None else get_cache()
        self.cache_ttl = cache_ttl if cache_ttl is not None else get_cache_ttl()

    # -------------------------------------------------------------------
    # Cache vs. store
    # -------------------------------------------------------------------
    def reconcile_one(self, tenant_id, product_id) -> ReconciliationResult:
        """Compare one product's cache entry with the store and repair the cache.

        Never raises: any failure is returned as a result carrying the error.
        """
        try:
            key = cache_key(tenant_id, product_id)
            record = self.store.get(tenant_id, product_id)
            cached = self.cache.get(key)

            actual_available = record.available_quantity
            # A miss is never consistent, even when availability happens to equal the sentinel
            consistent = cached is not None and cached == actual_available
            issues = [issue.description for issue in integrity_issues(record)]

            if not consistent:
                logger.warning(
                    "Inventory cache mismatch; overwriting from store",
                    tenant_id=tenant_id,
                    product_id=product_id,
                    store_available=actual_available,
                    cache_available=cached,
                )
                self.cache.set(key, actual_available, self.cache_ttl)

            return ReconciliationResult(
                product_id=product_id,
                store_available=actual_available,
                cache_available=CACHE_MISS if cached is None else cached,
                cache_was_consistent=consistent,
                issues=issues,
            )
        except Exception as exc:
            logger.error(
                "Failed to reconcile inventory",
                tenant_id=tenant_id,
                product_id=product_id,
                error=_describe(exc),
            )
            return ReconciliationResult(
                product_id=product_id,
                store_available=0,
                cache_available=0,
                cache_was_consistent=False,
                issues=[f"Error: {_describe(exc)}"],
            )

    def reconcile_all(self, tenant_id) -> Iterator[ReconciliationResult]:
        """Reconcile every record of the tenant. No ordering across products."""
        for record in self.store.list_all(tenant_id):
            yield self.reconcile_one(tenant_id, record.product_id)

    def summarize(self, tenant_id) -> ReconciliationSummary:
        """Reconcile the tenant and roll the results up for the admin dashboard."""
        results = list(self.reconcile_all(tenant_id))
        matches = sum(1 for result in results if result.cache_was_consistent)
        summary = ReconciliationSummary(
            total_checked=len(results),
            cache_matches=matches,
            cache_mismatches=len(results) - matches,
            records_with_issues=sum(1 for result in results if result.issues),
            problem_records=[result for result in results if result.is_problem],
            reconciled_at=datetime.now(UTC),
        )
        logger.info(
            "Inventory reconciliation summary",
            tenant_id=tenant_id,
            total_checked=summary.total_checked,
            cache_mismatches=summary.cache_mismatches,
            records_with_issues=summary.records_with_issues,
        )
        return summary

    def rebuild_all_cache(self, tenant_id) -> int:
        """Overwrite every cache entry of the tenant from the store. Returns entries written."""
        rebuilt = 0
        for record in self.store.list_all(tenant_id):
            key = cache_key(tenant_id, record.product_id)
            try:
                self.cache.set(key, record.available_quantity, self.cache_ttl)
            except Exception as exc:
                logger.error("Failed to rebuild inventory cache entry", cache_key=key, error=_describe(exc))
                continue
            rebuilt += 1

        logger.info("Rebuilt inventory cache", tenant_id=tenant_id, entries=rebuilt)
        return rebuilt

    def purge_orphans(self, tenant_id) -> int:
        """Remove cache entries whose store record no longer exists. Returns entries removed."""
        removed = 0
        for key in list(self.cache.keys_matching(tenant_key_pattern(tenant_id))):
            product_id = product_id_from_key(tenant_id, key)
            if product_id is None:
                continue
            try:
                if self.store.exists(tenant_id, product_id):
                    continue
                if self.cache.delete(key):
                    removed += 1
                    logger.info("Removed orphaned inventory cache entry", cache_key=key)
            except Exception as exc:
                logger.error("Failed to check inventory cache entry", cache_key=key, error=_describe(exc))

        logger.info("Cleaned up orphaned inventory cache entries", tenant_id=tenant_id, removed=removed)
        return removed

    # -------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------
    def validate(self, tenant_id) -> Iterator[InventoryIssue]:
        """Report integrity violations and stock-level warnings. Repairs nothing."""
        for record in self.store.list_all(tenant_id):
            try:
                issues = integrity_issues(record) + stock_level_issues(record)
            except Exception as exc:
                logger.error(
                    "Failed to validate inventory record",
                    tenant_id=tenant_id,
                    product_id=record.product_id,
                    error=_describe(exc),
                )
                issues = [
                    InventoryIssue(
                        product_id=record.product_id,
                        issue_type=IssueType.CHECK_FAILED,
                        description=f"Error: {_describe(exc)}",
                        severity=Severity.HIGH,
                    )
                ]
            yield from issues
