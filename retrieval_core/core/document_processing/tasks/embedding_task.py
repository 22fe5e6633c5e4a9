"""
Embedding generation task with credential rotation.

Splits chunk texts into provider-sized sub-batches and embeds them
concurrently through a BoundedExecutor. Each sub-batch is retried with
exponential backoff, acquiring a fresh credential from the shared rotator
per attempt. A sub-batch that exhausts its retries falls back to one call
per chunk so a single bad text cannot sink its neighbours.

Dependencies: tenacity, retrieval_core.core.concurrency, retrieval_core.core.credentials
System role: Second stage of document ingestion pipeline; query embedding
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Sequence

from tenacity import RetryCallState

from retrieval_core.boundary.embeddings.base import EmbeddingService, TaskHint
from retrieval_core.configs.embedding import EmbeddingSettings
from retrieval_core.core.concurrency import (
    BoundedExecutor,
    CancellationToken,
    RetryPolicy,
    exponential_backoff,
)
from retrieval_core.core.credentials import CredentialRotator
from retrieval_core.core.exceptions import (
    ExecutionCancelledError,
    PermanentInputError,
    RateLimitError,
    TransientProviderError,
)
from retrieval_core.models.chunk import Chunk

logger = logging.getLogger(__name__)

Vector = list[float]


@dataclass
class EmbeddingStats:
    """Counters accumulated across embed() calls."""

    total_chunks: int = 0
    successful: int = 0
    failed: int = 0
    requests: int = 0
    rate_limit_hits: int = 0
    fallbacks: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class EmbeddingTask:
    """Embed chunks in parallel sub-batches with retry and individual fallback."""

    def __init__(
        self,
        service: EmbeddingService,
        rotator: CredentialRotator,
        batch_size: int = 100,
        concurrency: int = 10,
        max_retries: int = 3,
        base_delay: float = 1.0,
        individual_delay: float = 0.1,
        max_cooldown_wait: float = 60.0,
        cancellation: CancellationToken | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize embedding task.

        Args:
            service: Embedding provider
            rotator: Shared credential rotator
            batch_size: Maximum texts per provider request
            concurrency: Sub-batches in flight per embed() call
            max_retries: Attempts per sub-batch before individual fallback
            base_delay: Base of the exponential backoff in seconds
            individual_delay: Pause between individual fallback calls
            max_cooldown_wait: Upper bound on waiting for a cooling-down credential
            cancellation: Token that stops new sub-batches from starting
            sleep: Awaitable sleep used for backoff and pauses

        Raises:
            ValueError: When batch_size is less than 1
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self._service = service
        self._rotator = rotator
        self.batch_size = batch_size
        self.concurrency = concurrency
        self.individual_delay = individual_delay
        self.max_cooldown_wait = max_cooldown_wait
        self.cancellation = cancellation
        self._sleep = sleep
        self._policy = RetryPolicy(
            max_attempts=max_retries,
            backoff=exponential_backoff(base_delay),
            retry_on=(TransientProviderError,),
            give_up_on=(PermanentInputError,),
            name="embed_batch",
            sleep=sleep,
        )
        self.stats = EmbeddingStats()

    @classmethod
    def from_settings(
        cls,
        settings: EmbeddingSettings,
        service: EmbeddingService,
        rotator: CredentialRotator,
        cancellation: CancellationToken | None = None,
    ) -> "EmbeddingTask":
        return cls(
            service=service,
            rotator=rotator,
            batch_size=settings.batch_size,
            concurrency=settings.concurrency,
            max_retries=settings.max_retries,
            base_delay=settings.base_delay,
            individual_delay=settings.individual_delay,
            max_cooldown_wait=settings.max_cooldown_wait,
            cancellation=cancellation,
        )

    async def embed(self, chunks: Sequence[Chunk]) -> list[Vector | None]:
        """
        Generate embeddings for chunks.

        Args:
            chunks: Chunks whose ``text`` is embedded verbatim

        Returns:
            list: One vector per chunk in input order; None where embedding
            failed or the sub-batch was cancelled before it started
        """
        if not chunks:
            return []

        texts = [chunk.text for chunk in chunks]
        spans = [
            (start, texts[start : start + self.batch_size])
            for start in range(0, len(texts), self.batch_size)
        ]

        executor = BoundedExecutor(self.concurrency, cancellation=self.cancellation)
        outcomes = await executor.run(
            [(lambda batch=batch: self._embed_sub_batch(batch)) for _, batch in spans]
        )

        results: list[Vector | None] = [None] * len(texts)
        for outcome, (start, batch) in zip(outcomes, spans):
            if outcome.ok:
                results[start : start + len(batch)] = outcome.value
            elif isinstance(outcome.error, ExecutionCancelledError):
                logger.info(
                    f"{__name__}:embed - Sub-batch at offset {start} skipped (cancelled)"
                )
            else:
                logger.error(
                    f"{__name__}:embed - Sub-batch at offset {start} failed: {outcome.error}"
                )

        successful = sum(1 for vector in results if vector is not None)
        self.stats.total_chunks += len(texts)
        self.stats.successful += successful
        self.stats.failed += len(texts) - successful
        logger.info(
            f"{__name__}:embed - Embedded {successful}/{len(texts)} chunks",
            extra={"sub_batches": len(spans), "peak_concurrency": executor.peak_concurrency},
        )
        return results

    async def embed_query(self, text: str) -> Vector:
        """
        Embed a query string.

        Raises:
            PermanentInputError: When the query is empty
            TransientProviderError: When every attempt failed
        """
        if not text or not text.strip():
            raise PermanentInputError("Query text is empty")
        vectors = await self._embed_with_retry([text], TaskHint.RETRIEVAL_QUERY)
        return vectors[0]

    async def _embed_sub_batch(self, texts: list[str]) -> list[Vector | None]:
        try:
            return list(await self._embed_with_retry(texts, TaskHint.RETRIEVAL_DOCUMENT))
        except (TransientProviderError, PermanentInputError) as e:
            logger.warning(
                f"{__name__}:_embed_sub_batch - Batch of {len(texts)} failed after "
                f"retries ({type(e).__name__}), falling back to individual embedding"
            )
            self.stats.fallbacks += 1
            return await self._embed_individually(texts)

    async def _embed_with_retry(self, texts: list[str], task_hint: TaskHint) -> list[Vector]:
        async for attempt in self._policy.retrying(wait=self._wait):
            with attempt:
                return await self._attempt(texts, task_hint)
        raise AssertionError("unreachable")  # pragma: no cover

    def _wait(self, retry_state: RetryCallState) -> float:
        """Backoff delay, extended until some credential leaves its cooldown."""
        delay = self._policy.delay_for(retry_state.attempt_number)
        cooldown = min(self._rotator.seconds_until_available(), self.max_cooldown_wait)
        return max(delay, cooldown)

    async def _attempt(self, texts: list[str], task_hint: TaskHint) -> list[Vector]:
        credential = await self._rotator.acquire()
        self.stats.requests += 1
        try:
            vectors = await self._service.embed_batch(texts, task_hint, credential)
        except RateLimitError as e:
            self.stats.rate_limit_hits += 1
            await self._rotator.report_rate_limited(credential, e.retry_after)
            raise
        except PermanentInputError:
            raise
        except TransientProviderError:
            await self._rotator.report_failure(credential)
            raise
        except Exception as e:
            await self._rotator.report_failure(credential)
            raise TransientProviderError(
                f"Embedding call failed: {type(e).__name__}: {e}",
                details={"credential_id": credential.id},
            ) from e

        if len(vectors) != len(texts):
            await self._rotator.report_failure(credential)
            raise TransientProviderError(
                "Provider returned wrong number of vectors",
                details={"expected": len(texts), "received": len(vectors)},
            )

        await self._rotator.report_success(credential)
        return [list(vector) for vector in vectors]

    async def _embed_individually(self, texts: list[str]) -> list[Vector | None]:
        results: list[Vector | None] = []
        for index, text in enumerate(texts):
            if index > 0 and self.individual_delay > 0:
                await self._sleep(self.individual_delay)
            try:
                vectors = await self._attempt([text], TaskHint.RETRIEVAL_DOCUMENT)
                results.append(vectors[0])
            except (TransientProviderError, PermanentInputError) as e:
                logger.warning(
                    f"{__name__}:_embed_individually - Chunk {index} failed: {e}"
                )
                results.append(None)
        return results
