"""
Rolling Buffer - fixed-capacity FIFO history of snapshots for one twin
"""
import threading
from collections import deque
from typing import Iterator, List, Optional

from .errors import InvalidArgumentError
from .twin_data import Snapshot

DEFAULT_CAPACITY = 20


class RollingBuffer:
    """
    Bounded, insertion-ordered sequence of snapshots (oldest first).

    Appending to a full buffer evicts exactly the oldest entry. All access
    goes through an internal lock so an append is never observed half-done.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidArgumentError(f"Buffer capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._items = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, snapshot: Snapshot):
        """Add a snapshot, discarding the oldest one if the buffer is full"""
        with self._lock:
            self._items.append(snapshot)

    def latest(self) -> Optional[Snapshot]:
        """Most recently appended snapshot, or None when empty"""
        with self._lock:
            return self._items[-1] if self._items else None

    def recent(self, k: int) -> List[Snapshot]:
        """Last min(k, len) snapshots, oldest first"""
        if k <= 0:
            return []
        with self._lock:
            items = list(self._items)
        return items[-k:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Snapshot]:
        with self._lock:
            items = list(self._items)
        return iter(items)
