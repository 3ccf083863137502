"""Protean repository adapter. Persists records through the active domain.

Whatever database provider the domain is configured with (memory in tests,
PostgreSQL in production) backs this store. A domain context must be active
when its methods are called.
"""

from collections.abc import Iterator

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from stockledger.stock.record import InventoryRecord, build_inventory_key
from stockledger.store.port import InventoryStore

PAGE_SIZE = 100


class RepositoryInventoryStore(InventoryStore):
    """Inventory store backed by the Protean repository for InventoryRecord."""

    @staticmethod
    def _repo():
        return current_domain.repository_for(InventoryRecord)

    def get(self, tenant_id: str, product_id: str) -> InventoryRecord:
        return self._repo().get(build_inventory_key(tenant_id, product_id))

    def save(self, record: InventoryRecord) -> InventoryRecord:
        self._repo().add(record)
        return record

    def delete(self, tenant_id: str, product_id: str) -> bool:
        repo = self._repo()
        try:
            record = repo.get(build_inventory_key(tenant_id, product_id))
        except ObjectNotFoundError:
            return False
        repo._dao.delete(record)
        return True

    def list_all(self, tenant_id: str) -> Iterator[InventoryRecord]:
        dao = self._repo()._dao
        offset = 0
        while True:
            results = (
                dao.query.filter(tenant_id=str(tenant_id))
                .order_by("product_id")
                .offset(offset)
                .limit(PAGE_SIZE)
                .all()
            )
            yield from results.items
            if len(results.items) < PAGE_SIZE:
                return
            offset += PAGE_SIZE

    def exists(self, tenant_id: str, product_id: str) -> bool:
        try:
            self.get(tenant_id, product_id)
        except ObjectNotFoundError:
            return False
        return True
