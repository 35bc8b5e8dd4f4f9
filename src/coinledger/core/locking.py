"""In-process keyed locks for serializing read-modify-write sequences."""

import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

logger = logging.getLogger(__name__)


class KeyedLock:
    """
    Registry of reentrant locks, one per key.

    Used to serialize position reconciliation per (portfolio, symbol) so that
    concurrent trades on the same pair never interleave their updates. Work on
    different keys proceeds in parallel.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable, timeout: float = -1) -> Iterator[None]:
        """
        Acquire the lock for ``key`` for the duration of the block.

        Raises:
            TimeoutError: If ``timeout`` is non-negative and the lock is not
                acquired within it.
        """
        lock = self._lock_for(key)
        if not lock.acquire(timeout=timeout):
            raise TimeoutError(f"Could not acquire lock for {key!r} within {timeout}s")
        logger.debug("Acquired lock: %r", key)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
