"""
Request-scoped lookup cache.

Owned by whoever builds the resolver (usually one SchedulingService call),
so nothing is shared between concurrent requests.
"""

import logging
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


class LookupCache:
    """Keyed in-memory store. Caches None results too (absent rows are common)."""

    def __init__(self):
        self._store: Dict[Hashable, Any] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        value = self._store.get(key, _MISSING)
        if value is _MISSING:
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._store[key] = value

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for `key`, calling `loader` on a miss.
        Exceptions from the loader propagate and nothing is stored.
        """
        value = self._store.get(key, _MISSING)
        if value is not _MISSING:
            self.hits += 1
            return value

        self.misses += 1
        value = loader()
        self._store[key] = value
        logger.debug(f"Cache SET: {key}")
        return value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
        self.hits = 0
        self.misses = 0
