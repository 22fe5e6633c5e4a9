"""
Retry policy.

Bounded retry with a pluggable backoff function, expressed as an explicit
object wrapping a unit of work and driven iteratively by tenacity.

Dependencies: tenacity
System role: Shared retry semantics for embedding and ingestion
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Callable[[int], float]


def exponential_backoff(base_delay: float) -> Backoff:
    """Delay after attempt ``n`` is ``base_delay * 2**(n-1)``."""

    def _delay(attempt: int) -> float:
        return base_delay * (2 ** (attempt - 1))

    return _delay


def linear_backoff(base_delay: float) -> Backoff:
    """Delay after attempt ``n`` is ``base_delay * n``."""

    def _delay(attempt: int) -> float:
        return base_delay * attempt

    return _delay


class RetryPolicy:
    """
    Bounded retry around an async unit of work.

    Attributes:
        max_attempts: Total attempts including the first
        backoff: Maps the failed attempt number to a delay in seconds
        retry_on: Exception types that trigger another attempt
        give_up_on: Exception types that are never retried, even when they
            subclass something in ``retry_on``
    """

    def __init__(
        self,
        max_attempts: int,
        backoff: Backoff,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        give_up_on: tuple[type[BaseException], ...] = (),
        name: str = "operation",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.retry_on = retry_on
        self.give_up_on = give_up_on
        self.name = name
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt."""
        return max(0.0, self.backoff(attempt))

    def should_retry(self, error: BaseException) -> bool:
        if isinstance(error, self.give_up_on):
            return False
        return isinstance(error, self.retry_on)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.delay_for(retry_state.attempt_number)

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{__name__}:call - {self.name} attempt "
            f"{retry_state.attempt_number}/{self.max_attempts} failed: {error}; "
            f"retrying in {retry_state.upcoming_sleep:.2f}s"
        )

    def retrying(self, wait: Callable[[RetryCallState], float] | None = None) -> AsyncRetrying:
        """
        Build the tenacity controller for one call.

        Args:
            wait: Optional override of the backoff computation

        Returns:
            AsyncRetrying: Iterable of attempts; re-raises the last error
        """
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait or self._wait,
            retry=retry_if_exception(self.should_retry),
            before_sleep=self._before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``fn`` until it succeeds, a non-retryable error occurs, or the
        attempt limit is reached.

        Raises:
            Exception: The last error raised by ``fn``
        """
        async for attempt in self.retrying():
            with attempt:
                return await fn()
        raise AssertionError("unreachable")  # pragma: no cover
