"""Availability cache abstraction: pluggable cache tier.

Uses the in-memory adapter by default. In production, configure via the
INVENTORY_CACHE_ADAPTER environment variable ("redis", with REDIS_URL).
"""

import os

from stockledger.cache.port import (
    AvailabilityCache,
    cache_key,
    product_id_from_key,
    tenant_key_pattern,
)

DEFAULT_CACHE_TTL_SECONDS = 300

_cache_instance: AvailabilityCache | None = None


def get_cache() -> AvailabilityCache:
    """Return the configured availability cache (singleton)."""
    global _cache_instance
    if _cache_instance is None:
        adapter = os.environ.get("INVENTORY_CACHE_ADAPTER", "memory")
        if adapter == "memory":
            from stockledger.cache.memory_adapter import MemoryAvailabilityCache

            _cache_instance = MemoryAvailabilityCache()
        elif adapter == "redis":
            from stockledger.cache.redis_adapter import RedisAvailabilityCache

            _cache_instance = RedisAvailabilityCache.from_url(
                os.environ.get("REDIS_URL", "redis://localhost:6379/0")
            )
        else:
            raise ValueError(f"Unknown cache adapter: {adapter}")
    return _cache_instance


def set_cache(cache: AvailabilityCache) -> None:
    """Override the active cache (useful for tests)."""
    global _cache_instance
    _cache_instance = cache


def reset_cache() -> None:
    """Reset the cache singleton (useful for testing)."""
    global _cache_instance
    _cache_instance = None


def get_cache_ttl() -> int:
    """Entry lifetime in seconds, from INVENTORY_CACHE_TTL_SECONDS (default 5 minutes)."""
    return int(os.environ.get("INVENTORY_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS))


__all__ = [
    "AvailabilityCache",
    "DEFAULT_CACHE_TTL_SECONDS",
    "cache_key",
    "get_cache",
    "get_cache_ttl",
    "product_id_from_key",
    "reset_cache",
    "set_cache",
    "tenant_key_pattern",
]
