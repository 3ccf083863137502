"""Reconciliation and integrity report types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Cached value reported when the cache has no entry for a product.
CACHE_MISS = -1


class Severity(Enum):
    WARNING = "WARNING"  # informational
    HIGH = "HIGH"  # should be addressed
    CRITICAL = "CRITICAL"  # requires immediate attention


class IssueType(Enum):
    INVALID_RESERVATION = "INVALID_RESERVATION"
    NEGATIVE_QUANTITY = "NEGATIVE_QUANTITY"
    NEGATIVE_RESERVED = "NEGATIVE_RESERVED"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    CHECK_FAILED = "CHECK_FAILED"


@dataclass(frozen=True)
class InventoryIssue:
    """One finding about one record."""

    product_id: str
    issue_type: IssueType
    description: str
    severity: Severity


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of comparing one record's cache entry against the store.

    `cache_available` is CACHE_MISS when the cache had no entry. A result for
    a record that could not be read at all carries zeros, is marked
    inconsistent, and has the error as its only issue.
    """

    product_id: str
    store_available: int
    cache_available: int
    cache_was_consistent: bool
    issues: list[str] = field(default_factory=list)

    @property
    def is_problem(self) -> bool:
        return not self.cache_was_consistent or bool(self.issues)


@dataclass(frozen=True)
class ReconciliationSummary:
    """Tenant-wide rollup of reconciliation results."""

    total_checked: int
    cache_matches: int
    cache_mismatches: int
    records_with_issues: int
    problem_records: list[ReconciliationResult]
    reconciled_at: datetime
