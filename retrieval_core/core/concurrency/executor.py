"""
Bounded concurrency executor.

Runs async units of work with at most ``limit`` in flight, starting queued
units in submission order as slots free up. Every unit resolves to its own
TaskOutcome, so one failure never aborts its siblings. Instances own their
semaphore and can be nested (document level around chunk-batch level).

Dependencies: asyncio
System role: Fan-out primitive for every stage that issues external calls
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from retrieval_core.core.exceptions import ExecutionCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

UnitOfWork = Callable[[], Awaitable[T]]


class CancellationToken:
    """Cooperative cancellation flag shared by nested executors."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()


@dataclass
class TaskOutcome(Generic[T]):
    """Success value or error for one unit of work."""

    index: int
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class BoundedExecutor:
    """Semaphore-gated runner for async units of work."""

    def __init__(self, limit: int, cancellation: CancellationToken | None = None) -> None:
        """
        Initialize executor.

        Args:
            limit: Maximum units running simultaneously
            cancellation: Optional token; once cancelled, units that have not
                started resolve to ExecutionCancelledError

        Raises:
            ValueError: When limit is less than 1
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.cancellation = cancellation
        self._running = 0
        self._peak = 0

    @property
    def peak_concurrency(self) -> int:
        """Highest number of simultaneously running units seen so far."""
        return self._peak

    async def run(self, units: Sequence[UnitOfWork[T]]) -> list[TaskOutcome[T]]:
        """
        Execute all units and wait for every one of them.

        Args:
            units: Zero-argument callables returning awaitables

        Returns:
            list[TaskOutcome]: One outcome per unit, in submission order
        """
        if not units:
            return []

        semaphore = asyncio.Semaphore(self.limit)

        async def _guarded(index: int, unit: UnitOfWork[T]) -> TaskOutcome[T]:
            async with semaphore:
                if self.cancellation is not None and self.cancellation.cancelled:
                    return TaskOutcome(
                        index=index,
                        error=ExecutionCancelledError(
                            "Run cancelled before unit started",
                            details={"index": index},
                        ),
                    )
                self._running += 1
                self._peak = max(self._peak, self._running)
                try:
                    return TaskOutcome(index=index, value=await unit())
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.debug(
                        f"{__name__}:run - Unit {index} failed: {type(e).__name__}: {e}"
                    )
                    return TaskOutcome(index=index, error=e)
                finally:
                    self._running -= 1

        # Tasks are created in submission order; asyncio.Semaphore wakes
        # waiters FIFO, so queued units start in that same order.
        tasks = [asyncio.create_task(_guarded(i, unit)) for i, unit in enumerate(units)]
        try:
            return list(await asyncio.gather(*tasks))
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

    async def map(
        self,
        fn: Callable[[Any], Awaitable[T]],
        items: Sequence[Any],
    ) -> list[TaskOutcome[T]]:
        """Convenience wrapper: run ``fn(item)`` for every item."""
        return await self.run([(lambda item=item: fn(item)) for item in items])
