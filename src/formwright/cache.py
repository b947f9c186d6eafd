"""In-process TTL cache for prefill results"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass(slots=True)
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now - self.timestamp < self.ttl


class TTLCache:
    """Key/value cache whose entries expire ``ttl`` seconds after being set.

    Expired entries are dropped lazily when read. Safe to share between the
    threads of a concurrent prefill run.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_valid(self._clock()):
                del self._entries[key]
                return None
            return entry

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=value, timestamp=self._clock(), ttl=ttl)

    def clear(self, pattern: Optional[str] = None) -> int:
        """Remove every entry, or only those whose key contains ``pattern``.

        Returns the number of entries removed.
        """
        with self._lock:
            if not pattern:
                removed = len(self._entries)
                self._entries.clear()
                return removed

            keys = [key for key in self._entries if pattern in key]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            keys: List[str] = list(self._entries)
        return {"size": len(keys), "keys": keys}
