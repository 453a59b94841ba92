"""
Keyed Locks - One lock per account

Module: security.keyed_locks
Date: 2026-10-03
Version: 0.1.0

CHANGELOG:
[2026-10-03 v0.1.0] Initial implementation
  - Lazily created RLock per key
  - Registry guard held only for the dictionary lookup

ARCHITECTURE:
Each user id maps to its own RLock, so mutations to one account are
serialized while different accounts never contend. Locks are never
removed: accounts are never deleted either.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLocks:
    """Registry of reentrant locks indexed by key"""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for key for the duration of the block"""
        with self.lock_for(key):
            yield

    def __len__(self) -> int:
        return len(self._locks)
