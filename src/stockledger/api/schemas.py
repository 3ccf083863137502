"""Pydantic request/response schemas for the Inventory API.

External contracts, kept separate from the InventoryRecord aggregate.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from stockledger.reconciliation.results import (
    InventoryIssue,
    ReconciliationResult,
    ReconciliationSummary,
)
from stockledger.stock.record import DEFAULT_LOW_STOCK_THRESHOLD


# ---------------------------------------------------------------------------
# Inventory Request Schemas
# ---------------------------------------------------------------------------
class InventoryRecordRequest(BaseModel):
    quantity: int = Field(ge=0, default=0)
    reserved_quantity: int = Field(ge=0, default=0)
    low_stock_threshold: int = Field(ge=0, default=DEFAULT_LOW_STOCK_THRESHOLD)
    track_inventory: bool = True
    allow_backorder: bool = False
    warehouse_location: str | None = Field(default=None, max_length=255)


class QuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Inventory Response Schemas
# ---------------------------------------------------------------------------
class InventoryRecordResponse(BaseModel):
    tenant_id: str
    product_id: str
    quantity: int
    reserved_quantity: int
    available_quantity: int
    low_stock_threshold: int
    track_inventory: bool
    allow_backorder: bool
    is_low_stock: bool
    is_out_of_stock: bool
    warehouse_location: str | None = None
    last_restocked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record) -> "InventoryRecordResponse":
        return cls(
            tenant_id=record.tenant_id,
            product_id=record.product_id,
            quantity=record.quantity,
            reserved_quantity=record.reserved_quantity,
            available_quantity=record.available_quantity,
            low_stock_threshold=record.low_stock_threshold,
            track_inventory=record.track_inventory,
            allow_backorder=record.allow_backorder,
            is_low_stock=record.is_low_stock,
            is_out_of_stock=record.is_out_of_stock,
            warehouse_location=record.warehouse_location,
            last_restocked_at=record.last_restocked_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class AvailabilityResponse(BaseModel):
    product_id: str
    quantity: int
    available: bool


class CacheEvictionResponse(BaseModel):
    evicted: bool


# ---------------------------------------------------------------------------
# Reconciliation Response Schemas
# ---------------------------------------------------------------------------
class ReconciliationResultResponse(BaseModel):
    product_id: str
    store_available: int
    cache_available: int
    cache_was_consistent: bool
    issues: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ReconciliationResultResponse":
        return cls(
            product_id=result.product_id,
            store_available=result.store_available,
            cache_available=result.cache_available,
            cache_was_consistent=result.cache_was_consistent,
            issues=list(result.issues),
        )


class ReconciliationSummaryResponse(BaseModel):
    total_checked: int
    cache_matches: int
    cache_mismatches: int
    records_with_issues: int
    problem_records: list[ReconciliationResultResponse]
    reconciled_at: datetime

    @classmethod
    def from_summary(cls, summary: ReconciliationSummary) -> "ReconciliationSummaryResponse":
        return cls(
            total_checked=summary.total_checked,
            cache_matches=summary.cache_matches,
            cache_mismatches=summary.cache_mismatches,
            records_with_issues=summary.records_with_issues,
            problem_records=[ReconciliationResultResponse.from_result(r) for r in summary.problem_records],
            reconciled_at=summary.reconciled_at,
        )


class InventoryIssueResponse(BaseModel):
    product_id: str
    issue_type: str
    description: str
    severity: str

    @classmethod
    def from_issue(cls, issue: InventoryIssue) -> "InventoryIssueResponse":
        return cls(
            product_id=issue.product_id,
            issue_type=issue.issue_type.value,
            description=issue.description,
            severity=issue.severity.value,
        )


class CountResponse(BaseModel):
    count: int
