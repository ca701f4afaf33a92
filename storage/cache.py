"""
In-process computation cache with TTL, stale-while-revalidate and single-flight.

Entries are keyed by (group, name, subject key). A fresh entry is served as-is;
a stale entry still inside ttl + grace is served immediately while exactly one
background refresh runs; anything else is computed by the first caller while
concurrent callers for the same key wait on that one computation.
"""

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL = float(os.getenv("SPIRIT_CACHE_TTL", "600"))
DEFAULT_GRACE = float(os.getenv("SPIRIT_CACHE_GRACE", "600"))
DEFAULT_MAX_WORKERS = 4


class CacheEntry:
    """
    A computed value plus the bookkeeping needed to decide whether it may be served.
    """

    def __init__(self, key: str, value: Any, computed_at: float, ttl: float, swr: bool = True, grace: float = 0.0):
        self.key = key
        self.value = value
        self.computed_at = computed_at
        self.ttl = ttl
        self.swr = swr
        self.grace = grace

    def age(self, now: float) -> float:
        return now - self.computed_at

    def is_fresh(self, now: float) -> bool:
        return self.age(now) <= self.ttl

    def is_servable_stale(self, now: float) -> bool:
        return self.swr and self.age(now) <= self.ttl + self.grace

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key, 'computed_at': self.computed_at, 'ttl': self.ttl, 'swr': self.swr, 'grace': self.grace}


class Cache:
    def __init__(
        self,
        default_ttl: Optional[float] = None,
        grace: Optional[float] = None,
        max_entries: Optional[int] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], float] = time.time,
    ):
        """Create a cache instance.

        :param default_ttl: seconds an entry stays fresh when get() is not given a ttl.
        :param grace: seconds past ttl during which a stale entry is still served while it refreshes.
        :param max_entries: optional maximum number of entries to keep; oldest entries are pruned when exceeded.
        :param max_workers: size of the background refresh pool.
        :param clock: time source, injectable for tests.
        """
        self.default_ttl = float(default_ttl) if default_ttl is not None else DEFAULT_TTL
        self.grace = float(grace) if grace is not None else DEFAULT_GRACE
        self.max_entries = int(max_entries) if max_entries is not None else None
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='cache-refresh')
        self._counters = {'hits': 0, 'stale_hits': 0, 'misses': 0, 'joins': 0, 'refresh_failures': 0}

    @staticmethod
    def make_key(group: str, name: str, key: str) -> str:
        return f"{group}:{name}:{key}"

    def close(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get(
        self,
        group: str,
        name: str,
        key: str,
        ttl: Optional[float],
        compute: Callable[[], Any],
        swr: bool = True,
        grace: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for (group, name, key), computing it when needed.

        Errors from a cold computation propagate to the caller and to every caller
        that joined it; nothing is stored. Errors from a background refresh are
        logged and the stale entry stays in place.
        """
        cache_key = self.make_key(group, name, key)
        ttl = float(ttl) if ttl is not None else self.default_ttl
        grace = float(grace) if grace is not None else self.grace

        with self._lock:
            now = self.clock()
            entry = self._entries.get(cache_key)
            if entry is not None and entry.is_fresh(now):
                self._counters['hits'] += 1
                return entry.value
            if entry is not None and entry.is_servable_stale(now):
                self._counters['stale_hits'] += 1
                self._schedule_refresh(cache_key, compute, ttl, swr, grace)
                return entry.value
            pending = self._inflight.get(cache_key)
            if pending is None:
                pending = Future()
                self._inflight[cache_key] = pending
                owner = True
                self._counters['misses'] += 1
            else:
                owner = False
                self._counters['joins'] += 1

        if not owner:
            return pending.result()

        try:
            value = compute()
        except BaseException as ex:
            with self._lock:
                self._inflight.pop(cache_key, None)
            pending.set_exception(ex)
            raise
        with self._lock:
            self._store(cache_key, value, ttl, swr, grace)
            self._inflight.pop(cache_key, None)
        pending.set_result(value)
        return value

    def _schedule_refresh(self, cache_key: str, compute: Callable[[], Any], ttl: float, swr: bool, grace: float):
        # caller holds the lock
        if cache_key in self._inflight:
            self._counters['joins'] += 1
            return
        pending = Future()
        self._inflight[cache_key] = pending
        try:
            self._executor.submit(self._refresh, cache_key, compute, ttl, swr, grace, pending)
        except RuntimeError as ex:
            # pool already shut down; keep serving the stale value
            self._inflight.pop(cache_key, None)
            pending.set_exception(ex)
            logger.warning(f"Could not schedule refresh for {cache_key}: {ex}")

    def _refresh(self, cache_key: str, compute: Callable[[], Any], ttl: float, swr: bool, grace: float, pending: Future):
        try:
            value = compute()
        except Exception as ex:
            with self._lock:
                self._inflight.pop(cache_key, None)
                self._counters['refresh_failures'] += 1
            logger.warning(f"Background refresh failed for {cache_key}; keeping last known value: {ex}")
            pending.set_exception(ex)
            return
        with self._lock:
            self._store(cache_key, value, ttl, swr, grace)
            self._inflight.pop(cache_key, None)
        logger.debug(f"Refreshed {cache_key}")
        pending.set_result(value)

    def _store(self, cache_key: str, value: Any, ttl: float, swr: bool, grace: float):
        self._entries[cache_key] = CacheEntry(cache_key, value, self.clock(), ttl, swr, grace)
        self._prune_if_needed()

    def _prune_if_needed(self):
        """Prune entries past ttl + grace, then the oldest entries beyond max_entries."""
        with self._lock:
            now = self.clock()
            expired = [k for k, e in self._entries.items() if e.age(now) > e.ttl + (e.grace if e.swr else 0.0)]
            for k in expired:
                del self._entries[k]
            if self.max_entries is not None and len(self._entries) > self.max_entries:
                oldest = sorted(self._entries.values(), key=lambda e: e.computed_at)
                for e in oldest[:len(self._entries) - self.max_entries]:
                    del self._entries[e.key]

    def set(self, group: str, name: str, key: str, value: Any, ttl: Optional[float] = None, swr: bool = True, grace: Optional[float] = None):
        with self._lock:
            self._store(
                self.make_key(group, name, key),
                value,
                float(ttl) if ttl is not None else self.default_ttl,
                swr,
                float(grace) if grace is not None else self.grace,
            )

    def peek(self, group: str, name: str, key: str) -> Optional[CacheEntry]:
        """Return the raw entry (fresh or not) without computing anything."""
        with self._lock:
            return self._entries.get(self.make_key(group, name, key))

    def pending(self, group: str, name: str, key: str) -> Optional[Future]:
        """Return the in-flight computation for a key, if any."""
        with self._lock:
            return self._inflight.get(self.make_key(group, name, key))

    def invalidate(self, group: str, name: str, key: str) -> bool:
        with self._lock:
            return self._entries.pop(self.make_key(group, name, key), None) is not None

    def invalidate_group(self, group: str) -> int:
        prefix = f"{group}:"
        with self._lock:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for k in keys:
                del self._entries[k]
            return len(keys)

    def clear(self):
        """Clear all entries from the cache."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Return basic statistics: entry count, oldest/newest computed_at, in-flight count and hit counters."""
        with self._lock:
            stamps = [e.computed_at for e in self._entries.values()]
            data = {
                'count': len(self._entries),
                'oldest': min(stamps) if stamps else None,
                'newest': max(stamps) if stamps else None,
                'inflight': len(self._inflight),
            }
            data.update(self._counters)
        return data

    def list_keys(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """Return cache keys with basic metadata, newest first."""
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda e: e.computed_at, reverse=True)
            return [e.to_dict() for e in entries[:limit]]


__all__ = ["Cache", "CacheEntry"]
