"""Integration tests for the reconciliation admin endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from stockledger.api import inventory_router, reconciliation_router, register_exception_handlers
from stockledger.cache import cache_key
from stockledger.stock.record import InventoryRecord, build_inventory_key
from stockledger.store import get_store

TENANT = "tenant-001"
BASE = f"/tenants/{TENANT}/inventory-reconciliation"


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(inventory_router)
    app.include_router(reconciliation_router)
    register_exception_handlers(app)
    return TestClient(app)


def _put_inventory(client, product_id="prod-001", **overrides):
    defaults = {"quantity": 100, "reserved_quantity": 0}
    defaults.update(overrides)
    response = client.put(f"/tenants/{TENANT}/inventory/{product_id}", json=defaults)
    assert response.status_code == 200


def _store_corrupt(product_id, quantity, reserved_quantity):
    get_store().save(
        InventoryRecord(
            inventory_key=build_inventory_key(TENANT, product_id),
            tenant_id=TENANT,
            product_id=product_id,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
        )
    )


class TestReconcileEndpoints:
    def test_reconcile_one_repairs_cache(self, client, cache):
        _put_inventory(client, quantity=50)
        cache.set(cache_key(TENANT, "prod-001"), 7, 300)

        response = client.post(f"{BASE}/reconcile/prod-001")

        assert response.status_code == 200
        body = response.json()
        assert body["store_available"] == 50
        assert body["cache_available"] == 7
        assert body["cache_was_consistent"] is False
        assert cache.get(cache_key(TENANT, "prod-001")) == 50

    def test_reconcile_one_missing_record_reports_error(self, client):
        response = client.post(f"{BASE}/reconcile/missing")

        assert response.status_code == 200
        body = response.json()
        assert body["cache_was_consistent"] is False
        assert body["issues"][0].startswith("Error: ")

    def test_reconcile_all(self, client):
        _put_inventory(client, "a")
        _put_inventory(client, "b")

        response = client.post(f"{BASE}/reconcile")

        assert response.status_code == 200
        assert sorted(r["product_id"] for r in response.json()) == ["a", "b"]
        assert all(r["cache_was_consistent"] for r in response.json())

    def test_summary(self, client, cache):
        _put_inventory(client, "a")
        _put_inventory(client, "b")
        cache.flush()

        response = client.get(f"{BASE}/summary")

        body = response.json()
        assert body["total_checked"] == 2
        assert body["cache_mismatches"] == 2
        assert body["cache_matches"] == 0
        assert len(body["problem_records"]) == 2
        assert body["reconciled_at"] is not None


class TestMaintenanceEndpoints:
    def test_rebuild_cache(self, client, cache):
        _put_inventory(client, "a", quantity=3)
        _put_inventory(client, "b", quantity=4)
        cache.flush()

        response = client.post(f"{BASE}/rebuild-cache")

        assert response.json() == {"count": 2}
        assert cache.get(cache_key(TENANT, "a")) == 3

    def test_purge_orphans(self, client, cache):
        _put_inventory(client, "live")
        cache.set(cache_key(TENANT, "gone"), 1, 300)

        response = client.post(f"{BASE}/purge-orphans")

        assert response.json() == {"count": 1}
        assert cache.get(cache_key(TENANT, "live")) == 100

    def test_validate(self, client):
        _put_inventory(client, "healthy", quantity=100)
        _store_corrupt("corrupt", quantity=5, reserved_quantity=10)

        response = client.get(f"{BASE}/validate")

        issues = response.json()
        assert {"corrupt"} == {i["product_id"] for i in issues}
        invalid = [i for i in issues if i["issue_type"] == "INVALID_RESERVATION"]
        assert invalid == [
            {
                "product_id": "corrupt",
                "issue_type": "INVALID_RESERVATION",
                "description": "Reserved (10) exceeds total (5)",
                "severity": "CRITICAL",
            }
        ]
