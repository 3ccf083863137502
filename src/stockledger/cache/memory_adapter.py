"""In-process availability cache for development and testing.

Behaves like the Redis adapter (per-entry TTL, glob key scans) without any
external service. It can be configured at runtime to fail, which lets tests
exercise the cache-outage paths of the facade and the reconciliation service.
"""

import re
import threading
import time
from collections.abc import Iterator

from stockledger.cache.port import AvailabilityCache


def _glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a Redis-style glob (`*`, `?`, `[...]`, backslash escapes) to a regex."""
    parts = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\").replace("[", "\\[")
                parts.append(f"[{body}]")
                i = end
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


class MemoryAvailabilityCache(AvailabilityCache):
    """Dictionary-backed cache with monotonic-clock expiry."""

    def __init__(self, clock=time.monotonic) -> None:
        self._entries: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.should_succeed: bool = True
        self.failure_reason: str = "Cache unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Cache unavailable") -> None:
        """Configure cache behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _ensure_available(self) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)

    def _live(self, key: str, now: float) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] <= now:
            del self._entries[key]
            return False
        return True

    def get(self, key: str) -> int | None:
        self._ensure_available()
        with self._lock:
            if not self._live(key, self._clock()):
                return None
            return self._entries[key][0]

    def set(self, key: str, value: int, ttl: int) -> None:
        self._ensure_available()
        with self._lock:
            self._entries[key] = (int(value), self._clock() + ttl)

    def delete(self, key: str) -> bool:
        self._ensure_available()
        with self._lock:
            existed = self._live(key, self._clock())
            self._entries.pop(key, None)
            return existed

    def keys_matching(self, pattern: str) -> Iterator[str]:
        self._ensure_available()
        matcher = _glob_to_regex(pattern)
        with self._lock:
            now = self._clock()
            keys = [key for key in list(self._entries) if self._live(key, now) and matcher.match(key)]
        yield from keys

    def ttl(self, key: str) -> float | None:
        """Seconds until `key` expires, or None if it is absent."""
        with self._lock:
            now = self._clock()
            if not self._live(key, now):
                return None
            return self._entries[key][1] - now

    def flush(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
