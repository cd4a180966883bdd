from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CacheEntry:
    value: Any
    expires_at: float  # epoch seconds


def input_key(kind: str, payload: Any) -> str:
    """Stable key for a projection request: kind + sha256 of canonical JSON."""
    blob = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return f"{kind}:{hashlib.sha256(blob.encode('utf-8')).hexdigest()}"


class TTLCache:
    """
    Memo cache for projection results, owned by callers (engines stay pure).
    - Thread-safe
    - Entries expire after a TTL; oldest-expiring 10% evicted when full
    """

    def __init__(self, default_ttl_seconds: int = 300, max_items: int = 256) -> None:
        self.default_ttl_seconds = int(default_ttl_seconds)
        self.max_items = int(max_items)
        self._lock = threading.Lock()
        self._store: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def _now(self) -> float:
        return time.time()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None or entry.expires_at <= self._now():
                self._store.pop(key, None)
                self.misses += 1
                return None
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        expires_at = self._now() + max(1, ttl)

        with self._lock:
            if key not in self._store and len(self._store) >= self.max_items:
                items = sorted(self._store.items(), key=lambda kv: kv[1].expires_at)
                for k, _ in items[: max(1, self.max_items // 10)]:
                    self._store.pop(k, None)
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
