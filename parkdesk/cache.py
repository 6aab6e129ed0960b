"""
Query cache for backend list and detail responses.

Entries are keyed by tuples whose first element is the endpoint path, e.g.
``("/api/lots", "includeInactive=true", "limit=10000")``. Mutations drop
every key under a prefix so the next read refetches.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable

from parkdesk.logging_config import get_logger

logger = get_logger(__name__)

QueryKey = tuple


class QueryCache:
    """Thread-safe LRU cache with TTL expiry and prefix invalidation."""

    def __init__(self, max_size: int = 256, ttl_seconds: float = 300.0) -> None:
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._cache: OrderedDict[QueryKey, tuple[float, Any]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds > 0 and (time.monotonic() - stored_at) > self.ttl_seconds

    def get(self, key: QueryKey) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None or self._expired(entry[0]):
                if entry is not None:
                    del self._cache[key]
                self._misses += 1
                return None
            self._cache.move_to_end(key)
            self._hits += 1
            return entry[1]

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (time.monotonic(), value)
            if len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    def get_or_fetch(self, key: QueryKey, fetch: Callable[[], Any]) -> Any:
        """Return the cached value or call ``fetch`` and cache its result."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = fetch()
        self.set(key, value)
        return value

    def invalidate(self, *prefix: Any) -> int:
        """Drop every key starting with ``prefix``; returns how many were dropped."""
        with self._lock:
            doomed = [k for k in self._cache if k[: len(prefix)] == prefix]
            for key in doomed:
                del self._cache[key]
        if doomed:
            logger.info("cache_invalidated", extra={"prefix": "/".join(map(str, prefix)), "dropped": len(doomed)})
        return len(doomed)

    def merge_items(
        self,
        prefix: tuple,
        items: list[dict],
        *,
        id_field: str = "id",
        key_length: int | None = None,
    ) -> int:
        """
        Append created records to every cached list under ``prefix``.

        Records whose id is already present are replaced in place. With
        ``key_length``, only lists keyed at exactly that length are merged;
        longer keys under the prefix hold filtered results and are dropped.
        Returns the number of cache entries merged.
        """
        touched = 0
        with self._lock:
            for key, (stored_at, value) in list(self._cache.items()):
                if key[: len(prefix)] != prefix or not isinstance(value, list):
                    continue
                if key_length is not None and len(key) != key_length:
                    del self._cache[key]
                    continue
                positions = {row.get(id_field): i for i, row in enumerate(value) if isinstance(row, dict)}
                merged = list(value)
                for item in items:
                    item_id = item.get(id_field)
                    if item_id is not None and item_id in positions:
                        merged[positions[item_id]] = item
                    else:
                        merged.append(item)
                self._cache[key] = (stored_at, merged)
                touched += 1
        return touched

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total > 0 else 0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
