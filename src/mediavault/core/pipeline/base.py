"""Composable scan pipeline.

A stage is a lazy, cancellable transformation of an item stream::

    stage(items: Iterator[In], context: ScanContext, cancel: CancellationToken) -> Iterator[Out]

Stages are chained left to right with ``ScanPipeline.from_source(seed)
.then(a).then(b)`` and nothing runs until the consumer iterates the built
stream, so a slow consumer stalls production instead of buffering.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from mediavault.shared.errors import ErrorContext, ScanCancelledError

if TYPE_CHECKING:
    from mediavault.core.pipeline.context import ScanContext

In = TypeVar("In")
Out = TypeVar("Out")


class CancellationToken:
    """Cooperative cancellation signal shared by every stage of one scan."""

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event if event is not None else threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; return the cancelled state."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self, operation: str | None = None) -> None:
        """Raise ScanCancelledError when cancellation was requested."""
        if self._event.is_set():
            raise ScanCancelledError(context=ErrorContext(operation=operation))


class PipelineStage(ABC, Generic[In, Out]):
    """Base class for named pipeline stages.

    Implementations must call ``cancel.raise_if_cancelled()`` at every
    yield point and must not catch ``ScanCancelledError``.
    """

    name: str = "stage"

    @abstractmethod
    def run(
        self,
        items: Iterator[In],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[Out]:
        """Transform the incoming stream."""

    def release(self) -> None:  # noqa: B027
        """Drop scan-scoped state. Called once the scan ends, whatever the outcome."""

    def __call__(
        self,
        items: Iterator[In],
        context: ScanContext,
        cancel: CancellationToken,
    ) -> Iterator[Out]:
        return self.run(items, context, cancel)


StageCallable = Callable[[Iterator[Any], "ScanContext", CancellationToken], Iterator[Any]]
Stage = Union[PipelineStage[Any, Any], StageCallable]

T = TypeVar("T")


class ScanPipeline(Generic[T]):
    """Immutable builder chaining stages over a seed stream."""

    def __init__(self, seed: Iterable[Any], stages: tuple[Stage, ...] = ()) -> None:
        self._seed = seed
        self._stages = stages

    @classmethod
    def from_source(cls, seed: Iterable[Any]) -> ScanPipeline[Any]:
        """Start a pipeline over ``seed`` (e.g. a library's root locations)."""
        return cls(seed)

    def then(self, stage: Stage) -> ScanPipeline[Any]:
        """Return a new pipeline with ``stage`` appended."""
        return ScanPipeline(self._seed, (*self._stages, stage))

    @property
    def stage_names(self) -> list[str]:
        return [getattr(stage, "name", getattr(stage, "__name__", "stage")) for stage in self._stages]

    def build(self, context: ScanContext, cancel: CancellationToken) -> Iterator[T]:
        """Compose the stages into one lazy iterator.

        Args:
            context: Shared scan context
            cancel: Cancellation token threaded through every stage

        Returns:
            Iterator producing the last stage's output
        """
        stream: Iterator[Any] = iter(self._seed)
        for stage in self._stages:
            stream = stage(stream, context, cancel)
        return stream
