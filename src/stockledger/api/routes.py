"""FastAPI routes for the stock ledger — inventory and reconciliation.

Tenants are an explicit path segment; resolving the caller's tenant is the
job of whatever sits in front of this API.
"""

from typing import Annotated

from fastapi import APIRouter, Path, Query
from protean.exceptions import ObjectNotFoundError

from stockledger.api.schemas import (
    AvailabilityResponse,
    CacheEvictionResponse,
    CountResponse,
    InventoryIssueResponse,
    InventoryRecordRequest,
    InventoryRecordResponse,
    QuantityRequest,
    ReconciliationResultResponse,
    ReconciliationSummaryResponse,
)
from stockledger.reconciliation.checker import InventoryReconciliationService
from stockledger.stock.record import InventoryRecord
from stockledger.stock.service import InventoryService

# ":" separates tenant from product in cache keys
TenantId = Annotated[str, Path(pattern=r"^[^:]+$")]

# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/tenants/{tenant_id}/inventory", tags=["inventory"])


@inventory_router.get("", response_model=list[InventoryRecordResponse])
async def list_inventory(tenant_id: TenantId) -> list[InventoryRecordResponse]:
    records = InventoryService().list_inventory(tenant_id)
    return [InventoryRecordResponse.from_record(record) for record in records]


@inventory_router.get("/low-stock", response_model=list[InventoryRecordResponse])
async def low_stock(tenant_id: TenantId) -> list[InventoryRecordResponse]:
    records = InventoryService().low_stock(tenant_id)
    return [InventoryRecordResponse.from_record(record) for record in records]


@inventory_router.get("/out-of-stock", response_model=list[InventoryRecordResponse])
async def out_of_stock(tenant_id: TenantId) -> list[InventoryRecordResponse]:
    records = InventoryService().out_of_stock(tenant_id)
    return [InventoryRecordResponse.from_record(record) for record in records]


@inventory_router.get("/{product_id}", response_model=InventoryRecordResponse)
async def get_inventory(tenant_id: TenantId, product_id: str) -> InventoryRecordResponse:
    record = InventoryService().get(tenant_id, product_id)
    return InventoryRecordResponse.from_record(record)


@inventory_router.put("/{product_id}", response_model=InventoryRecordResponse)
async def create_or_update_inventory(
    tenant_id: TenantId, product_id: str, body: InventoryRecordRequest
) -> InventoryRecordResponse:
    record = InventoryRecord.create(
        tenant_id=tenant_id,
        product_id=product_id,
        quantity=body.quantity,
        reserved_quantity=body.reserved_quantity,
        low_stock_threshold=body.low_stock_threshold,
        track_inventory=body.track_inventory,
        allow_backorder=body.allow_backorder,
        warehouse_location=body.warehouse_location,
    )
    saved = InventoryService().create_or_update(record)
    return InventoryRecordResponse.from_record(saved)


@inventory_router.post("/{product_id}/reserve", response_model=InventoryRecordResponse)
async def reserve_stock(tenant_id: TenantId, product_id: str, body: QuantityRequest) -> InventoryRecordResponse:
    record = InventoryService().reserve(tenant_id, product_id, body.quantity)
    return InventoryRecordResponse.from_record(record)


@inventory_router.post("/{product_id}/release", response_model=InventoryRecordResponse)
async def release_reservation(
    tenant_id: TenantId, product_id: str, body: QuantityRequest
) -> InventoryRecordResponse:
    record = InventoryService().release_reservation(tenant_id, product_id, body.quantity)
    return InventoryRecordResponse.from_record(record)


@inventory_router.post("/{product_id}/deduct", response_model=InventoryRecordResponse)
async def deduct_stock(tenant_id: TenantId, product_id: str, body: QuantityRequest) -> InventoryRecordResponse:
    record = InventoryService().deduct(tenant_id, product_id, body.quantity)
    return InventoryRecordResponse.from_record(record)


@inventory_router.post("/{product_id}/fulfill", response_model=InventoryRecordResponse)
async def fulfill_stock(tenant_id: TenantId, product_id: str, body: QuantityRequest) -> InventoryRecordResponse:
    record = InventoryService().fulfill(tenant_id, product_id, body.quantity)
    return InventoryRecordResponse.from_record(record)


@inventory_router.post("/{product_id}/restock", response_model=InventoryRecordResponse)
async def restock(tenant_id: TenantId, product_id: str, body: QuantityRequest) -> InventoryRecordResponse:
    record = InventoryService().restock(tenant_id, product_id, body.quantity)
    return InventoryRecordResponse.from_record(record)


@inventory_router.get("/{product_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    tenant_id: TenantId, product_id: str, quantity: Annotated[int, Query(ge=1)]
) -> AvailabilityResponse:
    available = InventoryService().check_availability(tenant_id, product_id, quantity)
    return AvailabilityResponse(product_id=product_id, quantity=quantity, available=available)


@inventory_router.delete("/{product_id}", status_code=204)
async def delete_inventory(tenant_id: TenantId, product_id: str) -> None:
    if not InventoryService().delete(tenant_id, product_id):
        raise ObjectNotFoundError({"_entity": f"Inventory for product `{product_id}` does not exist"})


@inventory_router.post("/{product_id}/clear-cache", response_model=CacheEvictionResponse)
async def clear_cache(tenant_id: TenantId, product_id: str) -> CacheEvictionResponse:
    return CacheEvictionResponse(evicted=InventoryService().clear_cache(tenant_id, product_id))


# ---------------------------------------------------------------------------
# Reconciliation Router (admin)
# ---------------------------------------------------------------------------
reconciliation_router = APIRouter(
    prefix="/tenants/{tenant_id}/inventory-reconciliation",
    tags=["inventory-reconciliation"],
)


@reconciliation_router.post("/reconcile", response_model=list[ReconciliationResultResponse])
async def reconcile_all(tenant_id: TenantId) -> list[ReconciliationResultResponse]:
    results = InventoryReconciliationService().reconcile_all(tenant_id)
    return [ReconciliationResultResponse.from_result(result) for result in results]


@reconciliation_router.post("/reconcile/{product_id}", response_model=ReconciliationResultResponse)
async def reconcile_one(tenant_id: TenantId, product_id: str) -> ReconciliationResultResponse:
    result = InventoryReconciliationService().reconcile_one(tenant_id, product_id)
    return ReconciliationResultResponse.from_result(result)


@reconciliation_router.get("/summary", response_model=ReconciliationSummaryResponse)
async def summary(tenant_id: TenantId) -> ReconciliationSummaryResponse:
    return ReconciliationSummaryResponse.from_summary(InventoryReconciliationService().summarize(tenant_id))


@reconciliation_router.post("/rebuild-cache", response_model=CountResponse)
async def rebuild_cache(tenant_id: TenantId) -> CountResponse:
    return CountResponse(count=InventoryReconciliationService().rebuild_all_cache(tenant_id))


@reconciliation_router.post("/purge-orphans", response_model=CountResponse)
async def purge_orphans(tenant_id: TenantId) -> CountResponse:
    return CountResponse(count=InventoryReconciliationService().purge_orphans(tenant_id))


@reconciliation_router.get("/validate", response_model=list[InventoryIssueResponse])
async def validate(tenant_id: TenantId) -> list[InventoryIssueResponse]:
    issues = InventoryReconciliationService().validate(tenant_id)
    return [InventoryIssueResponse.from_issue(issue) for issue in issues]
