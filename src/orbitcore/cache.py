"""
orbitcore.cache — Bounded Transform Cache
==========================================

A least-recently-used map with a fixed capacity.  Callers own the cache
(a ``Satellite`` holds one) and pass it into the transforms that can reuse
work, e.g. Earth orientation angles for a repeated epoch.
"""

import logging
from collections import OrderedDict
from typing import Any, Callable, Hashable

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


class TransformCache:
    """LRU cache with explicit capacity and hit / miss counters."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get(self, key: Hashable, default: Any = None) -> Any:
        try:
            value = self._entries[key]
        except KeyError:
            self.misses += 1
            return default
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def put(self, key: Hashable, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("TransformCache evicted %r (capacity %d)",
                         evicted, self.capacity)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and storing on a miss."""
        if key in self._entries:
            self.hits += 1
            self._entries.move_to_end(key)
            return self._entries[key]
        self.misses += 1
        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __repr__(self) -> str:
        return (f"TransformCache(size={len(self)}, capacity={self.capacity}, "
                f"hits={self.hits}, misses={self.misses})")
