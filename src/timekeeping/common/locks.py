from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """Process-local mutex registry keyed by an arbitrary hashable.

    Several keys can be held at once; they are always acquired in the same
    (sorted) order so two holders of overlapping key sets cannot deadlock.
    Locks are released on every exit path, including exceptions.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        acquired: list[threading.Lock] = []
        try:
            for key in sorted(set(keys), key=repr):
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
