"""In-process row locks keyed by (user, group, item)."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterable, Iterator
from contextlib import contextmanager

DEFAULT_STRIPES = 256


class RowLockTable:
    """Striped mutexes serializing read-modify-write work per row key.

    Keys hash onto a fixed set of stripes. Several keys are always acquired in
    ascending stripe order, so two callers locking overlapping key sets cannot
    deadlock.
    """

    def __init__(self, stripes: int = DEFAULT_STRIPES) -> None:
        if stripes < 1:
            msg = "stripes must be positive"
            raise ValueError(msg)
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _stripe(self, key: Hashable) -> int:
        return hash(key) % len(self._locks)

    @contextmanager
    def hold(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """Hold the locks for every key for the duration of the block."""
        stripes = sorted({self._stripe(key) for key in keys})
        acquired: list[threading.Lock] = []
        try:
            for index in stripes:
                lock = self._locks[index]
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


DEFAULT_LOCKS = RowLockTable()
