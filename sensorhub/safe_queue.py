"""A small thread-safe FIFO queue shared between producer and consumer threads."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

T = TypeVar("T")


class SafeQueue(Generic[T]):
    """First-in first-out queue whose operations are guarded by a lock."""

    def __init__(self) -> None:
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    def push(self, item: T) -> None:
        """Append an item at the back of the queue."""
        with self._lock:
            self._items.append(item)

    def pop(self) -> Optional[T]:
        """Remove and return the front item, or None when the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def describe(self) -> str:
        """Return a one-line summary of the queued items' values."""
        with self._lock:
            snapshot = list(self._items)
        if not snapshot:
            return "Queue is empty"
        values = " ".join(str(getattr(item, "value", item)) for item in snapshot)
        return f"Queue elements: {values}"

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __bool__(self) -> bool:
        with self._lock:
            return bool(self._items)