"""Redis availability cache, the production cache tier.

Values are stored as plain integers with `SET ... EX`, so TTL expiry is
Redis's own responsibility. Key scans use `SCAN MATCH` rather than `KEYS` to
avoid blocking the server on large keyspaces. Redis errors propagate
unchanged to the caller.
"""

from collections.abc import Iterator

import redis

from stockledger.cache.port import AvailabilityCache


class RedisAvailabilityCache(AvailabilityCache):
    """Availability cache backed by a Redis server."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisAvailabilityCache":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> int | None:
        value = self._client.get(key)
        if value is None:
            return None
        return int(value)

    def set(self, key: str, value: int, ttl: int) -> None:
        self._client.set(key, int(value), ex=ttl)

    def delete(self, key: str) -> bool:
        return self._client.delete(key) > 0

    def keys_matching(self, pattern: str) -> Iterator[str]:
        yield from self._client.scan_iter(match=pattern, count=500)
