"""Bounded queue for pipeline backpressure control.

``BoundedQueue`` wraps ``queue.Queue`` with a fixed capacity. Producers
block while the queue is full and never drop items, which is the only
backpressure mechanism between a prefetching producer and the consumer.
"""

from __future__ import annotations

import queue
from typing import Any


class BoundedQueue:
    """Thread-safe queue with size limits for backpressure control.

    Args:
        maxsize: Maximum number of items the queue can hold.
                0 means unlimited size.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=maxsize)
        self._maxsize = maxsize

    def put(
        self,
        item: Any,
        block: bool = True,
        timeout: float | None = None,
    ) -> None:
        """Put an item into the queue.

        Args:
            item: The item to put into the queue.
            block: If True, block until a slot is available.
            timeout: Maximum time to wait if blocking.

        Raises:
            queue.Full: If no slot became available.
        """
        self._queue.put(item, block=block, timeout=timeout)

    def get(self, block: bool = True, timeout: float | None = None) -> Any:
        """Get an item from the queue.

        Args:
            block: If True, block until an item is available.
            timeout: Maximum time to wait if blocking.

        Returns:
            The item from the queue.

        Raises:
            queue.Empty: If no item became available.
        """
        return self._queue.get(block=block, timeout=timeout)

    def drain(self) -> int:
        """Discard everything currently queued.

        Returns:
            Number of discarded items.
        """
        drained = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return drained
            drained += 1

    def qsize(self) -> int:
        """Return the approximate number of queued items."""
        return self._queue.qsize()

    def empty(self) -> bool:
        """Return True if the queue is empty."""
        return self._queue.empty()

    def full(self) -> bool:
        """Return True if the queue is full."""
        return self._queue.full()

    @property
    def maxsize(self) -> int:
        """Maximum number of items the queue can hold."""
        return self._maxsize
