"""Durable store port — abstract interface for the inventory source of truth.

The facade and the reconciliation service program against this port; the
Protean repository adapter is the production implementation and tests may
substitute their own.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from stockledger.stock.record import InventoryRecord


class InventoryStore(ABC):
    """Abstract interface for inventory record persistence."""

    @abstractmethod
    def get(self, tenant_id: str, product_id: str) -> InventoryRecord:
        """Load one record.

        Raises:
            ObjectNotFoundError: if the tenant has no record for the product.
        """
        ...

    @abstractmethod
    def save(self, record: InventoryRecord) -> InventoryRecord:
        """Insert or replace a record and return it."""
        ...

    @abstractmethod
    def delete(self, tenant_id: str, product_id: str) -> bool:
        """Delete a record. Returns False if there was nothing to delete."""
        ...

    @abstractmethod
    def list_all(self, tenant_id: str) -> Iterator[InventoryRecord]:
        """Yield every record of a tenant, in no particular order."""
        ...

    @abstractmethod
    def exists(self, tenant_id: str, product_id: str) -> bool:
        """True if the tenant has a record for the product."""
        ...
