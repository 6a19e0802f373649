import asyncio
import time
from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass


Clock = Callable[[], float]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """In-memory TTL cache with an injectable clock.

    Expired entries stay readable through ``get_stale`` until they are
    overwritten or evicted, so callers can degrade to the last known value.
    """

    def __init__(
        self,
        default_ttl: float = 300,
        max_size: int = 1000,
        clock: Optional[Clock] = None,
    ):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock or time.monotonic
        self._cache: Dict[str, CacheEntry] = {}
        self._access_order: list = []
        self._lock = asyncio.Lock()

    def _touch(self, key: str) -> None:
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

    async def get(self, key: str) -> Optional[Any]:
        """Return the value only while it is fresh."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return None

            self._touch(key)
            return entry.value

    async def get_stale(self, key: str) -> Optional[Any]:
        """Return the last stored value regardless of expiry."""
        async with self._lock:
            entry = self._cache.get(key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        async with self._lock:
            if ttl is None:
                ttl = self.default_ttl
            self._cache[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
            self._touch(key)

            # Evict least recently used if over max size
            while len(self._cache) > self.max_size:
                oldest_key = self._access_order.pop(0)
                self._cache.pop(oldest_key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()
            self._access_order.clear()

    def size(self) -> int:
        return len(self._cache)
