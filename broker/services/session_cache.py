"""In-memory cache of authenticated sessions for remote services.

Usage:
    cache = SessionCache()
    cache.put(key, material, ttl=300)
    cache.get(key)          # material, or None once expired
    cache.invalidate(key)   # after the remote rejects the session

Entries expire lazily: an entry with ``now >= expires_at`` is reported as
absent but stays in the map until it is overwritten, invalidated or purged.
The cache is owned by the application lifespan and injected into the broker.
"""

import hashlib
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CachedSession:
    material: Any
    expires_at: float


def make_cache_key(service: str, host: str, *secrets: str) -> str:
    """Deterministic cache key; secret material is folded into a SHA-256 digest."""
    identity = hashlib.sha256("\x00".join(secrets).encode()).hexdigest()
    return f"{service}:{host}:{identity}"


class SessionCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CachedSession] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the session material for key, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return None
            return entry.material

    def put(self, key: str, material: Any, ttl: float) -> None:
        """Store material for key, replacing any existing entry."""
        with self._lock:
            self._entries[key] = CachedSession(material, self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def discard(self, key: str, material: Any) -> bool:
        """Remove key only while it still holds ``material``, expired or not."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.material is not material:
                return False
            del self._entries[key]
            return True

    def purge_expired(self) -> int:
        """Drop all expired entries. Returns number of entries removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def stats(self) -> dict:
        with self._lock:
            now = self._clock()
            live = sum(1 for e in self._entries.values() if now < e.expires_at)
            return {"entries": len(self._entries), "live": live}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
