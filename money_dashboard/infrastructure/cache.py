"""In-process TTL cache for dashboard, search, and calculation responses"""

import threading
import time
from typing import Any, Dict, Optional, Tuple

from money_dashboard.infrastructure.observability.metrics import record_cache_lookup


def dashboard_key(user_id: str) -> str:
    return f"dashboard:{user_id}"


def search_key(user_id: str, params: str) -> str:
    return f"search:{user_id}:{params}"


def calculations_key(user_id: str, key: str) -> str:
    return f"calculations:{user_id}:{key}"


class TTLCache:
    """Key/value store whose entries expire after a per-entry TTL"""

    def __init__(self):
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = time.monotonic()
        with self._lock:
            hit = self._store.get(key)
            if hit is not None and hit[0] <= now:
                del self._store[key]
                hit = None
        record_cache_lookup(key.split(":", 1)[0], hit is not None)
        return hit[1] if hit else None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            self._store[key] = (now + ttl_seconds, value)

    def _sweep(self, now: float) -> None:
        """Drop every expired entry; caller holds the lock"""
        expired = [k for k, (expires_at, _) in self._store.items() if expires_at <= now]
        for key in expired:
            del self._store[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._store.clear()
            else:
                self._store.pop(key, None)

    def invalidate_user(self, user_id: str) -> int:
        """Drop every dashboard, search, and calculation entry for a user"""
        prefixes = (dashboard_key(user_id), f"search:{user_id}:", f"calculations:{user_id}:")
        with self._lock:
            stale = [k for k in self._store if k == prefixes[0] or k.startswith(prefixes[1:])]
            for key in stale:
                del self._store[key]
        return len(stale)
