"""Shared BDD fixtures and step definitions for the stock ledger."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from stockledger.cache import cache_key
from stockledger.reconciliation.checker import InventoryReconciliationService
from stockledger.stock.exceptions import InsufficientStockError
from stockledger.stock.record import InventoryRecord, build_inventory_key
from stockledger.stock.service import InventoryService
from stockledger.store import get_store

TENANT = "tenant-001"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def product_id():
    return "prod-001"


@pytest.fixture()
def service(cache):
    return InventoryService()


@pytest.fixture()
def checker(cache):
    return InventoryReconciliationService()


@pytest.fixture()
def outcome():
    """Result of the last When step: the error it raised, if any."""
    return {"error": None}


def _attempt(outcome, fn, *args):
    try:
        fn(*args)
    except ValidationError as exc:
        outcome["error"] = exc
    else:
        outcome["error"] = None


def _record(product_id):
    return get_store().get(TENANT, product_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a product with {quantity:d} units on hand and a low stock threshold of {threshold:d}"))
def _(service, product_id, quantity, threshold):
    service.create_or_update(
        InventoryRecord.create(
            tenant_id=TENANT, product_id=product_id, quantity=quantity, low_stock_threshold=threshold
        )
    )


@given(parsers.cfparse("a product with {quantity:d} units available"))
def _(service, product_id, quantity):
    service.create_or_update(InventoryRecord.create(tenant_id=TENANT, product_id=product_id, quantity=quantity))


@given("a backorderable product with no units on hand")
def _(service, product_id):
    service.create_or_update(
        InventoryRecord.create(tenant_id=TENANT, product_id=product_id, quantity=0, allow_backorder=True)
    )


@given(parsers.cfparse("a corrupted product with {quantity:d} units on hand and {reserved:d} reserved"))
def _(product_id, quantity, reserved):
    get_store().save(
        InventoryRecord(
            inventory_key=build_inventory_key(TENANT, product_id),
            tenant_id=TENANT,
            product_id=product_id,
            quantity=quantity,
            reserved_quantity=reserved,
        )
    )


@given(parsers.cfparse("the cache shows {available:d} units available for it"))
def _(cache, product_id, available):
    cache.set(cache_key(TENANT, product_id), available, 300)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("{quantity:d} units are reserved"))
def _(service, outcome, product_id, quantity):
    _attempt(outcome, service.reserve, TENANT, product_id, quantity)


@when(parsers.cfparse("{quantity:d} units are released"))
def _(service, outcome, product_id, quantity):
    _attempt(outcome, service.release_reservation, TENANT, product_id, quantity)


@when(parsers.cfparse("{quantity:d} units are deducted"))
def _(service, outcome, product_id, quantity):
    _attempt(outcome, service.deduct, TENANT, product_id, quantity)


@when(parsers.cfparse("{quantity:d} units are fulfilled"))
def _(service, outcome, product_id, quantity):
    _attempt(outcome, service.fulfill, TENANT, product_id, quantity)


# ---------------------------------------------------------------------------
# Then steps — shared assertions
# ---------------------------------------------------------------------------
@then("the reservation succeeds")
def _(outcome):
    assert outcome["error"] is None


@then("the request is refused for insufficient stock")
def _(outcome):
    assert isinstance(outcome["error"], InsufficientStockError)


@then(parsers.cfparse("{quantity:d} units are available"))
def _(product_id, quantity):
    assert _record(product_id).available_quantity == quantity


@then(parsers.cfparse("{quantity:d} units are on hand"))
def _(product_id, quantity):
    assert _record(product_id).quantity == quantity


@then(parsers.cfparse("{quantity:d} units are reserved"))
def _(product_id, quantity):
    assert _record(product_id).reserved_quantity == quantity


@then("the product is low on stock")
def _(product_id):
    assert _record(product_id).is_low_stock is True


@then(parsers.cfparse("the cache shows {available:d} units available"))
def _(cache, product_id, available):
    assert cache.get(cache_key(TENANT, product_id)) == available
