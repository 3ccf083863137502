"""Per-key mutual exclusion for load-mutate-save sequences.

Two writers against the same (tenant, product) each load a copy, mutate it
and save; without serialization the second save silently discards the first
one's change. KeyedLock hands out one lock per key and drops it once no
thread holds or waits on it, so memory stays bounded by the number of keys
in flight rather than the number of keys ever touched.
"""

import threading
from contextlib import contextmanager


class KeyedLock:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
