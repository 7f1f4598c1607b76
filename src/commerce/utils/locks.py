"""Process-local keyed locks.

Stock rows, orders and number sequences are serialized through named locks so
that read-check-write sequences on the same key never interleave. Locks are
re-entrant and always acquired in sorted key order to avoid deadlocks when a
caller needs several at once.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLocks:
    """A registry of re-entrant locks, one per key."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold the locks for every given key for the duration of the block."""
        ordered = sorted({str(k) for k in keys if k})
        acquired = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# Acquisition order: return or shipment, then order, then stock. Never reach back up the chain.
order_locks = KeyedLocks("order")
return_locks = KeyedLocks("return")
stock_locks = KeyedLocks("stock")
sequence_locks = KeyedLocks("sequence")
shipment_locks = KeyedLocks("shipment")
