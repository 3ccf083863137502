"""Availability cache port — abstract interface for the fast-path cache tier.

The cache holds only the last known available quantity per (tenant, product),
never the full record. It is a derived, discardable artifact: entries may be
stale, missing or wrong, and the durable store always wins.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

KEY_PREFIX = "inventory:"

_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


def _check_tenant(tenant_id):
    # ":" separates tenant from product; a tenant containing it would alias another tenant's keys
    if ":" in str(tenant_id):
        raise ValueError(f"Tenant id may not contain ':': {tenant_id!r}")


def cache_key(tenant_id: str, product_id: str) -> str:
    """Cache key of a (tenant, product) pair: inventory:{tenant}:{product}."""
    _check_tenant(tenant_id)
    return f"{KEY_PREFIX}{tenant_id}:{product_id}"


def tenant_key_pattern(tenant_id: str) -> str:
    """Glob pattern matching every cache key of a tenant."""
    _check_tenant(tenant_id)
    escaped = _GLOB_SPECIALS.sub(r"\\\1", str(tenant_id))
    return f"{KEY_PREFIX}{escaped}:*"


def product_id_from_key(tenant_id: str, key: str) -> str | None:
    """Recover the product id from a tenant's cache key, or None if the key is foreign."""
    prefix = f"{KEY_PREFIX}{tenant_id}:"
    if not key.startswith(prefix) or len(key) == len(prefix):
        return None
    return key[len(prefix) :]


class AvailabilityCache(ABC):
    """Abstract interface for availability cache adapters."""

    @abstractmethod
    def get(self, key: str) -> int | None:
        """Return the cached available quantity, or None on a miss."""
        ...

    @abstractmethod
    def set(self, key: str, value: int, ttl: int) -> None:
        """Store a value, overwriting any existing entry and refreshing its TTL (seconds)."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Evict an entry. Returns True if one existed."""
        ...

    @abstractmethod
    def keys_matching(self, pattern: str) -> Iterator[str]:
        """Yield live keys matching a glob pattern."""
        ...
