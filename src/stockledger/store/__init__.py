"""Durable store factory.

Provides get_store() / set_store() to swap implementations:
- RepositoryInventoryStore (default) persists through the Protean domain
- tests may install a double to simulate store failures
"""

from stockledger.store.port import InventoryStore
from stockledger.store.repository_adapter import RepositoryInventoryStore

_current_store: InventoryStore | None = None


def get_store() -> InventoryStore:
    """Return the current inventory store. Defaults to the repository adapter."""
    global _current_store
    if _current_store is None:
        _current_store = RepositoryInventoryStore()
    return _current_store


def set_store(store: InventoryStore) -> None:
    """Override the active inventory store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Reset to the default store."""
    global _current_store
    _current_store = None


__all__ = ["InventoryStore", "RepositoryInventoryStore", "get_store", "set_store", "reset_store"]
