"""
In-process TTL cache with race-condition protection.

Entries are fresh for expires_in seconds. After that they are kept for another
race_condition_ttl seconds: the first caller to see the stale entry reloads it
while everyone else keeps getting the stale value, so an expiring key never
sends a burst of identical requests to Jenkins.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import LRUCache, TTLCache

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    fresh_until: float


class ConfigCache:
    """Thread-safe cache keyed by string; values are produced by loader callables."""

    def __init__(
        self,
        expires_in: float,
        race_condition_ttl: float = 0,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.expires_in = expires_in
        self.race_condition_ttl = race_condition_ttl
        self._timer = timer
        # Entries outlive their freshness by the race window so a stale value
        # is still around to serve while it is being reloaded
        self._entries: TTLCache = TTLCache(
            maxsize=maxsize, ttl=expires_in + race_condition_ttl, timer=timer
        )
        self._lock = threading.Lock()
        self._key_locks: LRUCache = LRUCache(maxsize=maxsize)

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def fetch(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, calling loader to fill or refresh it.

        Loader exceptions propagate and leave the cache untouched (apart from
        the race window extension of a stale entry).
        """
        now = self._timer()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if now < entry.fresh_until:
                    return entry.value
                # Stale: let this caller reload, others keep the old value.
                # Re-inserting restarts the entry's expiry.
                entry.fresh_until = now + self.race_condition_ttl
                self._entries[key] = entry
                stale = entry
            else:
                stale = None

        if stale is not None:
            logger.debug(f"Refreshing stale cache entry {key}")
            with self._key_lock(key):
                value = loader()
                self.write(key, value)
            return value

        with self._key_lock(key):
            # Another caller may have loaded the key while we waited
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and self._timer() < entry.fresh_until:
                    return entry.value
            logger.debug(f"Cache miss for {key}")
            value = loader()
            self.write(key, value)
            return value

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = _Entry(value, self._timer() + self.expires_in)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._key_locks.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()
