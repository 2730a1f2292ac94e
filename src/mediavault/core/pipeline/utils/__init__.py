"""Pipeline utilities package.

- BoundedQueue: Thread-safe queue with size limits for backpressure
- Statistics classes: counters for traversal, queue and resolution metrics
"""

from __future__ import annotations

from mediavault.core.pipeline.utils.bounded_queue import BoundedQueue
from mediavault.core.pipeline.utils.statistics import (
    QueueStatistics,
    ResolutionStatistics,
    TraversalStatistics,
)

__all__ = [
    "BoundedQueue",
    "QueueStatistics",
    "ResolutionStatistics",
    "TraversalStatistics",
]
