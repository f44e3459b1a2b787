# backend/cryptofolio/services/market_data/cache.py
"""
In-process response cache for market data.

Thread-safe bounded LRU cache with a TTL per entry. CoinMarketCap quotas are
small, so repeated listings/info requests within the TTL are served from
memory.

Memory Safety:
    At most `max_size` entries are held. When the cache is full the least
    recently used entry is evicted.

Thread Safety:
    Uses threading.Lock, which is sufficient for a single worker process.
    Multiple workers each hold their own cache.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_SIZE = 500


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    keys: int
    max_size: int


class ResponseCache:
    """
    Bounded LRU cache whose entries expire after a TTL.

    Usage:
        cache = ResponseCache(default_ttl=60, max_size=500)
        cache.set("market:listings:100:USD", listings, ttl=30)
        cache.get("market:listings:100:USD")  # listings, or None once expired
    """

    def __init__(
            self,
            default_ttl: float = DEFAULT_TTL_SECONDS,
            max_size: int = DEFAULT_MAX_SIZE,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                expires_at, value = entry
                if self._clock() < expires_at:
                    self._entries.move_to_end(key)
                    self._hits += 1
                    logger.debug(f"Cache hit for {key}")
                    return value
                del self._entries[key]
                logger.debug(f"Cache expired for {key}")
            self._misses += 1
        return None

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, evicting the least recently used entry when full."""
        expires_at = self._clock() + (self._default_ttl if ttl is None else ttl)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self._max_size:
                oldest_key, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted {oldest_key} (LRU)")
            self._entries[key] = (expires_at, value)

    def invalidate(self, key: str) -> bool:
        """Remove one entry. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush(self) -> int:
        """Remove every entry and return how many there were."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Response cache flushed ({count} entries)")
        return count

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                keys=len(self._entries),
                max_size=self._max_size,
            )
