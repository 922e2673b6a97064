from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ResolutionCache(Generic[K, V]):
    """
    Append-only, thread-safe memo: computes each key at most once.

    Invariants:
    - hits read the dict without locking
    - concurrent misses on one key serialize on a per-key lock; the first
      caller computes, the others observe the stored value
    - a failed computation stores nothing
    - entries are never evicted or replaced
    """

    def __init__(self) -> None:
        self._entries: Dict[K, V] = {}
        self._key_locks: Dict[K, threading.Lock] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        try:
            return self._entries[key]
        except KeyError:
            pass

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        try:
            with key_lock:
                if key in self._entries:
                    return self._entries[key]
                logger.debug("Resolution cache miss: %r", key)
                value = compute()
                self._entries[key] = value
                return value
        finally:
            with self._lock:
                if self._key_locks.get(key) is key_lock:
                    del self._key_locks[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
