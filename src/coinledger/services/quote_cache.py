"""On-demand TTL cache in front of the market data provider."""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_ENTRIES = 1024


class QuoteCache:
    """
    Thread-safe in-memory cache with TTL support.

    Expiry is lazy: an expired entry is treated as a miss and overwritten by
    the next fetch. Fetchers run outside the lock, so two concurrent misses on
    the same key may both call upstream; the later result wins. Failed
    fetches are never cached.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str, fetcher: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or fetch, store and return it."""
        hit, value = self.peek(key)
        if hit:
            logger.debug("Quote cache hit: %s", key)
            return value

        logger.debug("Quote cache miss: %s", key)
        value = fetcher()
        self._store(key, value)
        return value

    def peek(self, key: str) -> tuple[bool, Optional[Any]]:
        """Return (True, value) for a live entry, (False, None) otherwise."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            value, fetched_at = entry
            if self._clock() - fetched_at < self._ttl:
                return True, value
        return False, None

    def _store(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._entries.move_to_end(key)
            if self._max_entries > 0:
                while len(self._entries) > self._max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Quote cache evicted: %s", evicted)

    def invalidate(self, key: str) -> None:
        """Remove specific key from cache."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all cached data."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # Key helpers

    @staticmethod
    def prices_key(symbols: Iterable[str]) -> str:
        return "prices:" + ",".join(sorted({s.strip().upper() for s in symbols}))

    @staticmethod
    def detail_key(coin_id: str) -> str:
        return "detail:" + coin_id.strip().lower()

    @staticmethod
    def search_key(query: str) -> str:
        return "search:" + query.strip().lower()

    @staticmethod
    def historical_key(symbol: str, days: int) -> str:
        return f"historical:{symbol.strip().upper()}:{days}"

    @staticmethod
    def top_key(limit: int) -> str:
        return f"top:{limit}"

    @staticmethod
    def trending_key() -> str:
        return "trending"
