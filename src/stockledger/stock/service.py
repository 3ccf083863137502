"""InventoryService: the entry point for inventory reads and mutations.

Owns the caching policy over the two-tier store:

- Reads are read-through: the cache is probed first, the full record always
  comes from the durable store, and a cold cache is populated on the way out.
- Writes are write-through: load from the store (never the cache), apply the
  ledger rule, save, then overwrite the cached availability.

The durable store is authoritative. Once a save succeeds the operation has
succeeded; a cache failure afterwards is logged and left for reconciliation
to repair. Mutations of one (tenant, product) are serialized in-process by a
keyed lock held from load to cache refresh.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError

from stockledger.cache import cache_key, get_cache, get_cache_ttl
from stockledger.cache.port import AvailabilityCache
from stockledger.stock.locking import KeyedLock
from stockledger.stock.record import InventoryRecord, build_inventory_key, require_positive_quantity
from stockledger.store import get_store
from stockledger.store.port import InventoryStore

logger = structlog.get_logger(__name__)

# Fields an update may overwrite. Identity, created_at and last_restocked_at
# are kept from the stored record; only restock() moves the restock timestamp.
_UPDATABLE_FIELDS = (
    "quantity",
    "reserved_quantity",
    "low_stock_threshold",
    "track_inventory",
    "allow_backorder",
    "warehouse_location",
)

# Shared by every service instance in the process so that per-request
# instances still serialize against each other.
_record_locks = KeyedLock()


class InventoryService:
    def __init__(
        self,
        store: InventoryStore | None = None,
        cache: AvailabilityCache | None = None,
        cache_ttl: int | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self.store = store if store is not None else get_store()
        self.cache = cache if cache is not None else get_cache()
        self.cache_ttl = cache_ttl if cache_ttl is not None else get_cache_ttl()
        self._locks = locks if locks is not None else _record_locks

    # -------------------------------------------------------------------
    # Cache helpers
    # -------------------------------------------------------------------
    def _read_cache(self, key):
        try:
            return self.cache.get(key)
        except Exception as exc:
            logger.warning("Inventory cache read failed; treating as miss", cache_key=key, error=str(exc))
            return None

    def _refresh_cache(self, record):
        key = cache_key(record.tenant_id, record.product_id)
        try:
            self.cache.set(key, record.available_quantity, self.cache_ttl)
        except Exception as exc:
            logger.warning(
                "Inventory cache refresh failed; store write stands",
                cache_key=key,
                available=record.available_quantity,
                error=str(exc),
            )

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, tenant_id, product_id):
        """Load a record, populating the cache on a miss.

        The cache only holds availability, so a hit still loads the record
        from the store; it just skips the cache write.

        Raises:
            ObjectNotFoundError: if the tenant has no record for the product.
        """
        cached = self._read_cache(cache_key(tenant_id, product_id))
        record = self.store.get(tenant_id, product_id)
        if cached is None:
            self._refresh_cache(record)
        return record

    def check_availability(self, tenant_id, product_id, quantity):
        """True if `quantity` units could be reserved now. False for an unknown product."""
        require_positive_quantity(quantity)
        try:
            record = self.get(tenant_id, product_id)
        except ObjectNotFoundError:
            return False
        return record.can_fulfill(quantity)

    def list_inventory(self, tenant_id):
        return list(self.store.list_all(tenant_id))

    def low_stock(self, tenant_id):
        return [record for record in self.store.list_all(tenant_id) if record.is_low_stock]

    def out_of_stock(self, tenant_id):
        return [record for record in self.store.list_all(tenant_id) if record.is_out_of_stock]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def create_or_update(self, record):
        """Persist a full record, replacing the stored one for the same product."""
        with self._locks.hold(build_inventory_key(record.tenant_id, record.product_id)):
            try:
                target = self.store.get(record.tenant_id, record.product_id)
            except ObjectNotFoundError:
                target = record
            else:
                for field_name in _UPDATABLE_FIELDS:
                    setattr(target, field_name, getattr(record, field_name))

            now = datetime.now(UTC)
            if target.created_at is None:
                target.created_at = now
            target.updated_at = now

            saved = self.store.save(target)
            self._refresh_cache(saved)

        logger.info(
            "Inventory saved",
            tenant_id=saved.tenant_id,
            product_id=saved.product_id,
            quantity=saved.quantity,
            reserved_quantity=saved.reserved_quantity,
        )
        return saved

    def _apply(self, tenant_id, product_id, operation, quantity):
        require_positive_quantity(quantity)
        with self._locks.hold(build_inventory_key(tenant_id, product_id)):
            record = self.store.get(tenant_id, product_id)
            operation(record, quantity)
            saved = self.store.save(record)
            self._refresh_cache(saved)

        logger.info(
            "Inventory updated",
            operation=operation.__name__,
            tenant_id=tenant_id,
            product_id=product_id,
            quantity=quantity,
            available=saved.available_quantity,
        )
        return saved

    def reserve(self, tenant_id, product_id, quantity):
        return self._apply(tenant_id, product_id, InventoryRecord.reserve, quantity)

    def release_reservation(self, tenant_id, product_id, quantity):
        return self._apply(tenant_id, product_id, InventoryRecord.release_reservation, quantity)

    def deduct(self, tenant_id, product_id, quantity):
        """Remove physical stock without touching the reservation. See InventoryRecord.deduct."""
        return self._apply(tenant_id, product_id, InventoryRecord.deduct, quantity)

    def fulfill(self, tenant_id, product_id, quantity):
        """Deduct and release reserved units in one step."""
        return self._apply(tenant_id, product_id, InventoryRecord.fulfill, quantity)

    def restock(self, tenant_id, product_id, quantity):
        return self._apply(tenant_id, product_id, InventoryRecord.restock, quantity)

    def delete(self, tenant_id, product_id):
        """Delete a record and evict its cache entry.

        Eviction is best-effort: if it fails the entry is left as an orphan
        for `InventoryReconciliationService.purge_orphans` to remove.
        Returns False if no record existed.
        """
        key = cache_key(tenant_id, product_id)
        with self._locks.hold(build_inventory_key(tenant_id, product_id)):
            deleted = self.store.delete(tenant_id, product_id)
            try:
                self.cache.delete(key)
            except Exception as exc:
                logger.warning("Inventory cache eviction failed; entry orphaned", cache_key=key, error=str(exc))

        logger.info("Inventory deleted", tenant_id=tenant_id, product_id=product_id, existed=deleted)
        return deleted

    def clear_cache(self, tenant_id, product_id):
        """Evict the cached availability only. Returns True if an entry existed."""
        return self.cache.delete(cache_key(tenant_id, product_id))
