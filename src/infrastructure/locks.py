"""
Per-key in-process locks.

Used by the negotiation engine so that writes to the same chain are
serialised while chains for different rides proceed in parallel.  The
registry guard is held only while a lock is looked up or created, never
during the critical section.
"""

from __future__ import annotations

import threading


class KeyedLock:
    def __init__(self, lock: threading.Lock, key: str, timeout_seconds: float = 5.0):
        self._lock = lock
        self.key = f"lock:{key}"
        self.timeout = timeout_seconds

    def acquire(self) -> bool:
        """Try to acquire within the timeout. Returns True on success."""
        return self._lock.acquire(timeout=self.timeout)

    def release(self) -> None:
        self._lock.release()

    # context-manager support
    def __enter__(self):
        if not self.acquire():
            raise RuntimeError(f"Could not acquire lock: {self.key}")
        return self

    def __exit__(self, *args):
        self.release()


class KeyedLockRegistry:
    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock(self, key: str) -> KeyedLock:
        with self._guard:
            inner = self._locks.setdefault(key, threading.Lock())
        return KeyedLock(inner, key, self.timeout)

    def discard(self, key: str) -> None:
        """Forget the lock for a key that will never be written again."""
        with self._guard:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
