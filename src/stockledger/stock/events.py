"""Domain events for the InventoryRecord aggregate.

Raised on every ledger mutation and published when the record is persisted.
Quantities carry both the previous and the new value so downstream consumers
never need to re-read the record.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer

from stockledger.domain import stockledger


@stockledger.event(part_of="InventoryRecord")
class StockReserved:
    """Units were held against an in-flight order."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_reserved = Integer(required=True)
    new_reserved = Integer(required=True)
    new_available = Integer(required=True)
    backordered = Boolean(default=False)
    reserved_at = DateTime(required=True)


@stockledger.event(part_of="InventoryRecord")
class ReservationReleased:
    """A hold was returned to available stock."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_reserved = Integer(required=True)
    new_reserved = Integer(required=True)
    new_available = Integer(required=True)
    released_at = DateTime(required=True)


@stockledger.event(part_of="InventoryRecord")
class StockDeducted:
    """Physical stock left the warehouse."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    new_available = Integer(required=True)
    deducted_at = DateTime(required=True)


@stockledger.event(part_of="InventoryRecord")
class StockFulfilled:
    """Reserved units shipped: physical stock and reservation shrank together."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    new_reserved = Integer(required=True)
    new_available = Integer(required=True)
    fulfilled_at = DateTime(required=True)


@stockledger.event(part_of="InventoryRecord")
class StockRestocked:
    """Stock was received, increasing the physical quantity."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    new_available = Integer(required=True)
    restocked_at = DateTime(required=True)


@stockledger.event(part_of="InventoryRecord")
class LowStockDetected:
    """Available stock dropped to or below the record's threshold."""

    __version__ = 1

    inventory_key = Identifier(required=True)
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    current_available = Integer(required=True)
    low_stock_threshold = Integer(required=True)
    detected_at = DateTime(required=True)
