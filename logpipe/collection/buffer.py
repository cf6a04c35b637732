"""Bounded FIFO buffer shared by polling ticks and the draining consumer."""

import threading
from collections import deque
from typing import Deque, Iterable, List

from logpipe.models import RawLog

MAX_BUFFER_SIZE = 1000


class LogBuffer:
    """
    Thread-safe bounded buffer of collected records.

    Appending past capacity evicts the oldest records. Append-with-eviction
    and drain each happen under one lock, so no caller observes a partially
    updated buffer.
    """

    def __init__(self, capacity: int = MAX_BUFFER_SIZE):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._items: Deque[RawLog] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def extend(self, logs: Iterable[RawLog]) -> int:
        """
        Append records in order, evicting the oldest beyond capacity.

        Returns:
            Number of records evicted
        """
        logs = list(logs)
        with self._lock:
            overflow = len(self._items) + len(logs) - self._capacity
            self._items.extend(logs)
        return max(0, overflow)

    def drain(self) -> List[RawLog]:
        """Remove and return every buffered record, oldest first."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
