"""Tests for InventoryService: read-through and write-through over the store and cache."""

from unittest.mock import MagicMock

import pytest
from protean.exceptions import ObjectNotFoundError
from stockledger.cache import cache_key
from stockledger.stock.exceptions import InsufficientStockError, InvalidQuantityError
from stockledger.stock.record import InventoryRecord
from stockledger.stock.service import InventoryService
from stockledger.store import get_store

TENANT = "tenant-001"
TTL = 300


@pytest.fixture()
def service(cache):
    return InventoryService(cache_ttl=TTL)


def _stock(service, product_id="prod-001", **overrides):
    defaults = {
        "tenant_id": TENANT,
        "product_id": product_id,
        "quantity": 100,
        "reserved_quantity": 0,
    }
    defaults.update(overrides)
    return service.create_or_update(InventoryRecord.create(**defaults))


def _cached(cache, product_id="prod-001", tenant_id=TENANT):
    return cache.get(cache_key(tenant_id, product_id))


class TestGet:
    def test_get_returns_stored_record(self, service):
        _stock(service, quantity=40, reserved_quantity=5)
        record = service.get(TENANT, "prod-001")
        assert record.quantity == 40
        assert record.reserved_quantity == 5

    def test_get_missing_record_raises(self, service):
        with pytest.raises(ObjectNotFoundError):
            service.get(TENANT, "no-such-product")

    def test_miss_populates_cache(self, service, cache):
        _stock(service, quantity=40, reserved_quantity=5)
        cache.flush()

        service.get(TENANT, "prod-001")

        assert _cached(cache) == 35
        assert cache.ttl(cache_key(TENANT, "prod-001")) <= TTL

    def test_hit_does_not_rewrite_cache(self, service, cache):
        _stock(service, quantity=40)
        cache.set(cache_key(TENANT, "prod-001"), 999, TTL)

        record = service.get(TENANT, "prod-001")

        assert record.available_quantity == 40
        assert _cached(cache) == 999

    def test_cache_read_failure_treated_as_miss(self, service, cache):
        _stock(service, quantity=40)
        cache.configure(should_succeed=False)

        record = service.get(TENANT, "prod-001")

        assert record.quantity == 40

    def test_tenants_are_isolated(self, service, cache):
        _stock(service, quantity=10)
        service.create_or_update(InventoryRecord.create(tenant_id="tenant-002", product_id="prod-001", quantity=77))

        assert service.get(TENANT, "prod-001").quantity == 10
        assert service.get("tenant-002", "prod-001").quantity == 77
        assert _cached(cache) == 10
        assert _cached(cache, tenant_id="tenant-002") == 77


class TestCreateOrUpdate:
    def test_create_writes_store_and_cache(self, service, cache):
        _stock(service, quantity=20, reserved_quantity=4)
        assert get_store().get(TENANT, "prod-001").quantity == 20
        assert _cached(cache) == 16

    def test_update_replaces_stored_values(self, service, cache):
        _stock(service, quantity=20, warehouse_location="A1")
        _stock(service, quantity=50, low_stock_threshold=5, warehouse_location="B2")

        record = service.get(TENANT, "prod-001")
        assert record.quantity == 50
        assert record.low_stock_threshold == 5
        assert record.warehouse_location == "B2"
        assert _cached(cache) == 50

    def test_update_preserves_created_at(self, service):
        first = _stock(service)
        created_at = first.created_at

        _stock(service, quantity=1)

        record = service.get(TENANT, "prod-001")
        assert record.created_at == created_at
        assert record.updated_at >= created_at

    def test_update_preserves_last_restocked_at(self, service):
        _stock(service, quantity=0)
        restocked_at = service.restock(TENANT, "prod-001", 10).last_restocked_at
        assert restocked_at is not None

        _stock(service, quantity=15)

        record = service.get(TENANT, "prod-001")
        assert record.quantity == 15
        assert record.last_restocked_at == restocked_at

    def test_cache_write_failure_does_not_fail_save(self, service, cache):
        cache.configure(should_succeed=False)
        saved = _stock(service, quantity=20)
        assert saved.quantity == 20
        assert get_store().get(TENANT, "prod-001").quantity == 20


class TestReserve:
    def test_reserve_updates_store_and_cache(self, service, cache):
        _stock(service, quantity=10)

        record = service.reserve(TENANT, "prod-001", 3)

        assert record.reserved_quantity == 3
        assert get_store().get(TENANT, "prod-001").reserved_quantity == 3
        assert _cached(cache) == 7

    def test_reserve_reads_store_not_cache(self, service, cache):
        _stock(service, quantity=10)
        cache.set(cache_key(TENANT, "prod-001"), 1000, TTL)

        with pytest.raises(InsufficientStockError):
            service.reserve(TENANT, "prod-001", 50)

    def test_failed_reserve_leaves_store_and_cache_untouched(self, service, cache):
        _stock(service, quantity=10, reserved_quantity=8)

        with pytest.raises(InsufficientStockError):
            service.reserve(TENANT, "prod-001", 5)

        assert get_store().get(TENANT, "prod-001").reserved_quantity == 8
        assert _cached(cache) == 2

    def test_reserve_missing_record_raises(self, service):
        with pytest.raises(ObjectNotFoundError):
            service.reserve(TENANT, "no-such-product", 1)

    def test_invalid_quantity_rejected_before_store_access(self, cache):
        store = MagicMock()
        service = InventoryService(store=store, cache=cache, cache_ttl=TTL)

        with pytest.raises(InvalidQuantityError):
            service.reserve(TENANT, "prod-001", 0)

        store.get.assert_not_called()

    def test_cache_failure_after_save_still_succeeds(self, service, cache):
        _stock(service, quantity=10)
        cache.configure(should_succeed=False)

        record = service.reserve(TENANT, "prod-001", 4)

        assert record.reserved_quantity == 4
        assert get_store().get(TENANT, "prod-001").reserved_quantity == 4

    def test_store_failure_propagates_and_skips_cache(self, cache):
        record = InventoryRecord.create(tenant_id=TENANT, product_id="prod-001", quantity=10)
        store = MagicMock()
        store.get.return_value = record
        store.save.side_effect = ConnectionError("database down")
        service = InventoryService(store=store, cache=cache, cache_ttl=TTL)

        with pytest.raises(ConnectionError):
            service.reserve(TENANT, "prod-001", 1)

        assert _cached(cache) is None


class TestOtherMutations:
    def test_release_reservation(self, service, cache):
        _stock(service, quantity=10, reserved_quantity=6)
        record = service.release_reservation(TENANT, "prod-001", 4)
        assert record.reserved_quantity == 2
        assert _cached(cache) == 8

    def test_release_more_than_reserved_rejected(self, service):
        _stock(service, quantity=10, reserved_quantity=1)
        with pytest.raises(InvalidQuantityError):
            service.release_reservation(TENANT, "prod-001", 2)

    def test_deduct(self, service, cache):
        _stock(service, quantity=10, reserved_quantity=2)
        record = service.deduct(TENANT, "prod-001", 5)
        assert record.quantity == 5
        assert record.reserved_quantity == 2
        assert _cached(cache) == 3

    def test_deduct_beyond_quantity_rejected(self, service):
        _stock(service, quantity=3)
        with pytest.raises(InsufficientStockError):
            service.deduct(TENANT, "prod-001", 4)

    def test_fulfill(self, service, cache):
        _stock(service, quantity=10, reserved_quantity=4)
        record = service.fulfill(TENANT, "prod-001", 4)
        assert record.quantity == 6
        assert record.reserved_quantity == 0
        assert _cached(cache) == 6

    def test_restock(self, service, cache):
        _stock(service, quantity=0)
        record = service.restock(TENANT, "prod-001", 25)
        assert record.quantity == 25
        assert record.last_restocked_at is not None
        assert _cached(cache) == 25

    def test_mutations_release_their_locks(self, service):
        _stock(service, quantity=10)
        service.reserve(TENANT, "prod-001", 1)
        with pytest.raises(InsufficientStockError):
            service.reserve(TENANT, "prod-001", 100)
        assert len(service._locks) == 0


class TestCheckAvailability:
    def test_available(self, service):
        _stock(service, quantity=10, reserved_quantity=4)
        assert service.check_availability(TENANT, "prod-001", 6) is True

    def test_not_available(self, service):
        _stock(service, quantity=10, reserved_quantity=4)
        assert service.check_availability(TENANT, "prod-001", 7) is False

    def test_missing_product_is_unavailable(self, service):
        assert service.check_availability(TENANT, "no-such-product", 1) is False

    def test_backorder_is_always_available(self, service):
        _stock(service, quantity=0, allow_backorder=True)
        assert service.check_availability(TENANT, "prod-001", 500) is True

    def test_invalid_quantity_rejected(self, service):
        with pytest.raises(InvalidQuantityError):
            service.check_availability(TENANT, "prod-001", 0)


class TestDeleteAndClearCache:
    def test_delete_removes_record_and_cache(self, service, cache):
        _stock(service)

        assert service.delete(TENANT, "prod-001") is True

        with pytest.raises(ObjectNotFoundError):
            get_store().get(TENANT, "prod-001")
        assert _cached(cache) is None

    def test_delete_missing_record_returns_false(self, service):
        assert service.delete(TENANT, "no-such-product") is False

    def test_delete_with_failing_cache_still_deletes(self, service, cache):
        _stock(service)
        cache.configure(should_succeed=False)

        assert service.delete(TENANT, "prod-001") is True

        cache.configure(should_succeed=True)
        assert get_store().exists(TENANT, "prod-001") is False
        assert _cached(cache) == 100

    def test_clear_cache_evicts_only_the_cache(self, service, cache):
        _stock(service, quantity=12)

        assert service.clear_cache(TENANT, "prod-001") is True

        assert _cached(cache) is None
        assert get_store().get(TENANT, "prod-001").quantity == 12

    def test_clear_cache_without_entry(self, service):
        assert service.clear_cache(TENANT, "prod-001") is False

    def test_clear_cache_then_get_repopulates(self, service, cache):
        _stock(service, quantity=12)
        service.clear_cache(TENANT, "prod-001")
        service.get(TENANT, "prod-001")
        assert _cached(cache) == 12


class TestListings:
    def test_list_inventory_is_scoped_to_tenant(self, service):
        _stock(service, "prod-001")
        _stock(service, "prod-002")
        service.create_or_update(InventoryRecord.create(tenant_id="tenant-002", product_id="prod-003"))

        products = sorted(r.product_id for r in service.list_inventory(TENANT))
        assert products == ["prod-001", "prod-002"]

    def test_low_stock(self, service):
        _stock(service, "plenty", quantity=100)
        _stock(service, "scarce", quantity=5)
        _stock(service, "untracked", quantity=0, track_inventory=False)

        assert [r.product_id for r in service.low_stock(TENANT)] == ["scarce"]

    def test_out_of_stock(self, service):
        _stock(service, "plenty", quantity=100)
        _stock(service, "gone", quantity=4, reserved_quantity=4)

        assert [r.product_id for r in service.out_of_stock(TENANT)] == ["gone"]
