"""InventoryRecord aggregate (CQRS) — the stock ledger for one product of one tenant.

This is a standard CQRS aggregate (not event sourced): the current quantities
are persisted as-is and every mutation raises a domain event describing it.

Stock Level Model:
    quantity:           Physical units on hand
    reserved_quantity:  Held for in-flight orders (not yet shipped)
    available_quantity: quantity - reserved_quantity (derived, never stored)

Persisted quantities are deliberately unconstrained at the field level. A
record corrupted outside this service (reserved above quantity, negative
counts) must still load so that reconciliation can report it; the rules are
enforced by the mutation methods instead.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from stockledger.domain import stockledger
from stockledger.stock.events import (
    LowStockDetected,
    ReservationReleased,
    StockDeducted,
    StockFulfilled,
    StockReserved,
    StockRestocked,
)
from stockledger.stock.exceptions import InsufficientStockError, InvalidQuantityError

DEFAULT_LOW_STOCK_THRESHOLD = 10


def build_inventory_key(tenant_id, product_id):
    """Compound identity of a record: one per (tenant, product)."""
    return f"{tenant_id}::{product_id}"


def require_positive_quantity(quantity):
    """Raise InvalidQuantityError unless `quantity` is a strictly positive integer."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError({"quantity": ["Quantity must be greater than 0"]})


@stockledger.aggregate
class InventoryRecord:
    """Stock levels and stocking policy for one product of one tenant."""

    inventory_key = Identifier(identifier=True, required=True)  # "tenant_id::product_id"
    tenant_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=0)
    reserved_quantity = Integer(default=0)
    low_stock_threshold = Integer(default=DEFAULT_LOW_STOCK_THRESHOLD)
    track_inventory = Boolean(default=True)
    allow_backorder = Boolean(default=False)
    warehouse_location = String(max_length=255)
    last_restocked_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        tenant_id,
        product_id,
        quantity=0,
        reserved_quantity=0,
        low_stock_threshold=DEFAULT_LOW_STOCK_THRESHOLD,
        track_inventory=True,
        allow_backorder=False,
        warehouse_location=None,
    ):
        """Stock a product for a tenant."""
        errors = {}
        if quantity < 0:
            errors["quantity"] = ["Quantity cannot be negative"]
        if reserved_quantity < 0:
            errors["reserved_quantity"] = ["Reserved quantity cannot be negative"]
        elif reserved_quantity > quantity and not allow_backorder:
            errors["reserved_quantity"] = [f"Reserved quantity ({reserved_quantity}) exceeds quantity ({quantity})"]
        if low_stock_threshold < 0:
            errors["low_stock_threshold"] = ["Low stock threshold cannot be negative"]
        if errors:
            raise InvalidQuantityError(errors)

        now = datetime.now(UTC)
        return cls(
            inventory_key=build_inventory_key(tenant_id, product_id),
            tenant_id=tenant_id,
            product_id=product_id,
            quantity=quantity,
            reserved_quantity=reserved_quantity,
            low_stock_threshold=low_stock_threshold,
            track_inventory=track_inventory,
            allow_backorder=allow_backorder,
            warehouse_location=warehouse_location,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived stock levels
    # -------------------------------------------------------------------
    @property
    def available_quantity(self):
        return (self.quantity or 0) - (self.reserved_quantity or 0)

    @property
    def is_low_stock(self):
        return bool(self.track_inventory) and self.available_quantity <= self.low_stock_threshold

    @property
    def is_out_of_stock(self):
        return bool(self.track_inventory) and self.available_quantity <= 0

    def can_fulfill(self, quantity):
        """True if `quantity` units could be reserved under the current policy."""
        if not self.track_inventory:
            return True
        if self.allow_backorder:
            return True
        return self.available_quantity >= quantity

    # -------------------------------------------------------------------
    # Helper
    # -------------------------------------------------------------------
    def _check_low_stock(self, now):
        """Raise LowStockDetected if a tracked record is at or below its threshold."""
        if self.is_low_stock:
            self.raise_(
                LowStockDetected(
                    inventory_key=self.inventory_key,
                    tenant_id=self.tenant_id,
                    product_id=self.product_id,
                    current_available=self.available_quantity,
                    low_stock_threshold=self.low_stock_threshold,
                    detected_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------
    def reserve(self, quantity):
        """Hold stock for an order. Backorder may drive availability negative."""
        require_positive_quantity(quantity)

        if not self.can_fulfill(quantity):
            raise InsufficientStockError(
                {"quantity": [f"Insufficient stock: {self.available_quantity} available, {quantity} requested"]}
            )

        backordered = bool(self.track_inventory) and self.available_quantity < quantity
        previous_reserved = self.reserved_quantity
        now = datetime.now(UTC)
        self.reserved_quantity = previous_reserved + quantity
        self.updated_at = now

        self.raise_(
            StockReserved(
                inventory_key=self.inventory_key,
                tenant_id=self.tenant_id,
                product_id=self.product_id,
                quantity=quantity,
                previous_reserved=previous_reserved,
                new_reserved=self.reserved_quantity,
                new_available=self.available_quantity,
                backordered=backordered,
                reserved_at=now,
            )
        )
        self._check_low_stock(now)

    def release_reservation(self, quantity):
        """Return held stock to available."""
        require_positive_quantity(quantity)

        if quantity > self.reserved_quantity:
            raise InvalidQuantityError(
                {"quantity": [f"Cannot release {quantity}: only {self.reserved_quantity} reserved"]}
            )

        previous_reserved = self.reserved_quantity
        now = datetime.now(UTC)
        self.reserved_quantity = previous_reserved - quantity
        self.updated_at = now

        self.raise_(
            ReservationReleased(
                inventory_key=self.inventory_key,
                tenant_id=self.tenant_id,
                product_id=self.product_id,
                quantity=quantity,
                previous_reserved=previous_reserved,
                new_reserved=self.reserved_quantity,
                new_available=self.available_quantity,
                released_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Physical stock
    # -------------------------------------------------------------------
    def deduct(self, quantity):
        """Remove physical stock.

        Checked against `quantity`, not availability, and never allowed to go
        negative even under backorder. The reservation is left untouched;
        callers shipping reserved units pair this with `release_reservation`,
        or use `fulfill` to do both at once.
        """
        require_positive_quantity(quantity)

        if quantity > self.quantity:
            raise InsufficientStockError(
                {"quantity": [f"Cannot deduct {quantity}: only {self.quantity} on hand"]}
            )

        previous_quantity = self.quantity
        now = datetime.now(UTC)
        self.quantity = previous_quantity - quantity
        self.updated_at = now

        self.raise_(
            StockDeducted(
                inventory_key=self.inventory_key,
                tenant_id=self.tenant_id,
                product_id=self.product_id,
                quantity=quantity,
                previous_quantity=previous_quantity,
                new_quantity=self.quantity,
                new_available=self.available_quantity,
                deducted_at=now,
            )
        )
        self._check_low_stock(now)

    def fulfill(self, quantity):
        """Ship reserved units: deduct physical stock and release the hold together."""
        require_positive_quantity(quantity)

        if quantity > self.reserved_quantity:
            raise InvalidQuantityError(
                {"quantity": [f"Cannot fulfill {quantity}: only {self.reserved_quantity} reserved"]}
            )
        if quantity > self.quantity:
            raise InsufficientStockError(
                {"quantity": [f"Cannot fulfill {quantity}: only {self.quantity} on hand"]}
            )

        now = datetime.now(UTC)
        self.quantity = self.quantity - quantity
        self.reserved_quantity = self.reserved_quantity - quantity
        self.updated_at = now

        self.raise_(
            StockFulfilled(
                inventory_key=self.inventory_key,
                tenant_id=self.tenant_id,
                product_id=self.product_id,
                quantity=quantity,
                new_quantity=self.quantity,
                new_reserved=self.reserved_quantity,
                new_available=self.available_quantity,
                fulfilled_at=now,
            )
        )
        self._check_low_stock(now)

    def restock(self, quantity):
        """Receive stock into the warehouse."""
        require_positive_quantity(quantity)

        previous_quantity = self.quantity
        now = datetime.now(UTC)
        self.quantity = previous_quantity + quantity
        self.last_restocked_at = now
        self.updated_at = now

        self.raise_(
            StockRestocked(
                inventory_key=self.inventory_key,
                tenant_id=self.tenant_id,
                product_id=self.product_id,
                quantity=quantity,
                previous_quantity=previous_quantity,
                new_quantity=self.quantity,
                new_available=self.available_quantity,
                restocked_at=now,
            )
        )
