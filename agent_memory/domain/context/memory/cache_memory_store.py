from typing import Callable, Dict, Any, Optional
import asyncio
from datetime import datetime, timedelta

from agent_memory.domain.models.memory import utc_now


class CacheMemoryStore:
    """In-memory cache store with TTL support.

    Expired entries are dropped on read, and swept from the whole cache on
    every write.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.clock = clock
        self._lock = asyncio.Lock()

    async def set(self, key: str, value: Any, ttl: int = 3600) -> None:
        """Set a value in cache with TTL"""

        async with self._lock:
            now = self.clock()
            self._evict_expired(now)
            self.cache[key] = {
                "value": value,
                "expires_at": now + timedelta(seconds=ttl)
            }

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""

        async with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None

            if self.clock() > entry["expires_at"]:
                del self.cache[key]
                return None

            return entry["value"]

    async def delete(self, key: str) -> bool:
        """Delete a key from cache"""

        async with self._lock:
            return self.cache.pop(key, None) is not None

    async def clear_expired(self) -> int:
        """Clear expired entries and return count"""

        async with self._lock:
            return self._evict_expired(self.clock())

    def _evict_expired(self, now: datetime) -> int:
        expired_keys = [
            key for key, entry in self.cache.items()
            if now > entry["expires_at"]
        ]

        for key in expired_keys:
            del self.cache[key]

        return len(expired_keys)
