from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from dossiers_client_sdk.models import PageResult

CacheKey = tuple[tuple[str, ...], str]

DEFAULT_MAX_ENTRIES = 200


@dataclass(frozen=True)
class CacheEntry:
    value: PageResult
    expires_at: float


def cache_key(query_key: tuple[str, ...], params: dict[str, Any]) -> CacheKey:
    return tuple(query_key), json.dumps(params, sort_keys=True, default=str)


class ListingCache:
    """In-memory TTL cache of normalized listing pages, keyed by query key and params."""

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        now: Callable[[], float] | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self.ttl_seconds = max(1.0, ttl_seconds)
        self.max_entries = max(1, max_entries)
        self._now = now or time.monotonic
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> PageResult | None:
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            if entry.expires_at <= self._now():
                self._entries.pop(key, None)
                return None
            return entry.value

    def set(self, key: CacheKey, value: PageResult) -> None:
        with self._lock:
            now = self._now()
            expired = [cached for cached, entry in self._entries.items() if entry.expires_at <= now]
            for cached in expired:
                del self._entries[cached]
            self._entries.pop(key, None)
            # insertion order is write order, so the first keys are the oldest
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = CacheEntry(value=value, expires_at=now + self.ttl_seconds)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def invalidate_query(self, query_key: tuple[str, ...]) -> None:
        target = tuple(query_key)
        with self._lock:
            stale_keys = [key for key in self._entries if key[0][: len(target)] == target]
            for key in stale_keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
