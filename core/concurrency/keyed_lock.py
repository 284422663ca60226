"""
LuxRent Core Concurrency — Keyed Lock Registry
================================================
Maps a key (an inventory item id) to its own lock, created on first
use. Reservations for different items never contend; reservations
for the same item are serialized.

Rules:
- One lock per key, never a single global booking lock
- The registry lock guards only the key → lock map, never held
  while a caller's critical section runs
- hold() releases on every exit path (return, raise)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

logger = logging.getLogger("luxrent.concurrency")


class LockTimeoutError(Exception):
    """Could not acquire a keyed lock within the allotted time."""

    def __init__(self, key: str, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock for '{key}' within {timeout}s."
        )


class KeyedLockRegistry:
    """
    Thread-safe registry of per-key locks.

    Usage:
        locks = KeyedLockRegistry()
        with locks.hold("yacht-azimut-68"):
            ...  # exclusive for this item only
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str, timeout: Optional[float] = None) -> Iterator[None]:
        lock = self.lock_for(key)
        if timeout is None:
            acquired = lock.acquire()
        else:
            acquired = lock.acquire(timeout=timeout)
        if not acquired:
            logger.warning(f"Lock wait for '{key}' exceeded {timeout}s")
            raise LockTimeoutError(key, timeout)
        try:
            yield
        finally:
            lock.release()

    def is_locked(self, key: str) -> bool:
        with self._registry_lock:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @property
    def key_count(self) -> int:
        with self._registry_lock:
            return len(self._locks)
