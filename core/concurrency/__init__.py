"""
LuxRent Core Concurrency — Public API
=======================================
Keyed mutual exclusion for per-item critical sections.
"""

from core.concurrency.keyed_lock import KeyedLockRegistry, LockTimeoutError

__all__ = [
    "KeyedLockRegistry",
    "LockTimeoutError",
]
