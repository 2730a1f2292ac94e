"""Prefetch buffer between a producing stage and the consumer.

``BufferedStage`` drains its upstream on a single producer thread into a
``BoundedQueue``. The producer blocks while the queue is full and never
drops items, so order is preserved and memory stays bounded. Completion
and the first producer error are delivered through the queue itself.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterator
from typing import Any

from mediavault.core.pipeline.base import CancellationToken, PipelineStage
from mediavault.core.pipeline.context import ScanContext
from mediavault.core.pipeline.utils import BoundedQueue, QueueStatistics
from mediavault.shared.constants import PipelineStages, ScanDefaults

logger = logging.getLogger(__name__)

_DONE = object()


class _ProducerFailure:
    """Carries an exception raised on the producer thread."""

    def __init__(self, error: BaseException) -> None:
        self.error = error


class BufferedStage(PipelineStage[Any, Any]):
    """In-order prefetch buffer.

    Args:
        capacity: Queue capacity; 0 turns the stage into a passthrough
        poll_timeout: Seconds between cancellation checks while blocked
        stats: Optional queue statistics collector
    """

    name = PipelineStages.PREFETCH

    def __init__(
        self,
        capacity: int = ScanDefaults.PREFETCH_QUEUE_SIZE,
        poll_timeout: float = ScanDefaults.QUEUE_POLL_TIMEOUT,
        stats: QueueStatistics | None = None,
    ) -> None:
        self.capacity = capacity
        self.poll_timeout = poll_timeout
        self.stats = stats or QueueStatistics()

    def run(
        self,
        items: Iterator[Any],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[Any]:
        if self.capacity <= 0:
            yield from items
            return

        buffer = BoundedQueue(maxsize=self.capacity)
        stop = threading.Event()
        producer = threading.Thread(
            target=self._produce,
            args=(items, buffer, stop, cancel),
            name=f"scan-prefetch-{context.scan.id}",
            daemon=True,
        )
        producer.start()

        try:
            while True:
                cancel.raise_if_cancelled(self.name)
                try:
                    item = buffer.get(timeout=self.poll_timeout)
                except queue.Empty:
                    continue
                self.stats.increment_items_got()

                if item is _DONE:
                    return
                if isinstance(item, _ProducerFailure):
                    raise item.error
                yield item
        finally:
            stop.set()
            # Unblock a producer waiting on a full queue
            buffer.drain()
            producer.join(timeout=self.poll_timeout * 4)
            if producer.is_alive():
                logger.warning("Prefetch producer did not stop within timeout")

    def _produce(
        self,
        items: Iterator[Any],
        buffer: BoundedQueue,
        stop: threading.Event,
        cancel: CancellationToken,
    ) -> None:
        try:
            for item in items:
                if not self._put(buffer, item, stop):
                    return
            self._put(buffer, _DONE, stop)
        except BaseException as e:  # noqa: BLE001
            # Forwarded to the consumer thread, which re-raises it
            if not stop.is_set() and not cancel.is_cancelled:
                logger.debug("Prefetch producer failed: %s", e)
            self._put(buffer, _ProducerFailure(e), stop)

    def _put(self, buffer: BoundedQueue, item: Any, stop: threading.Event) -> bool:
        """Blocking put that gives up once the consumer has stopped."""
        while not stop.is_set():
            try:
                buffer.put(item, timeout=self.poll_timeout)
            except queue.Full:
                continue
            self.stats.increment_items_put()
            self.stats.update_max_size(buffer.qsize())
            return True
        return False
