"""
Test suite for EmbeddingTask.

Tests sub-batch fan-out, retry with credential rotation, individual
fallback, the single-credential rate-limit scenario and cancellation.

System role: Verification of the embedding stage
"""

import pytest

from retrieval_core.boundary.embeddings.base import TaskHint
from retrieval_core.core.concurrency import CancellationToken
from retrieval_core.core.credentials import CredentialRotator
from retrieval_core.core.document_processing.tasks import EmbeddingTask
from retrieval_core.core.exceptions import (
    PermanentInputError,
    RateLimitError,
    TransientProviderError,
)
from retrieval_core.models.chunk import Chunk


def make_chunks(count: int, marker: str = "", poison_at: set[int] | None = None) -> list[Chunk]:
    poison_at = poison_at or set()
    return [
        Chunk(
            id=f"c{i}",
            document_id="doc-1",
            partition_key="ws",
            ordinal=i,
            body=f"chunk {i} {marker} text about contracts" + (" POISON" if i in poison_at else ""),
        )
        for i in range(count)
    ]


class TestEmbeddingTaskBatching:
    """Test suite for EmbeddingTask.embed() fan-out."""

    @pytest.mark.asyncio
    async def test_embed_should_split_into_provider_sized_batches(
        self, fake_embeddings, rotator, sleep, embed
    ) -> None:
        # Arrange
        task = EmbeddingTask(fake_embeddings, rotator, batch_size=100, concurrency=3, sleep=sleep)
        chunks = make_chunks(250)

        # Act
        vectors = await task.embed(chunks)

        # Assert
        assert sorted(fake_embeddings.batch_sizes) == [50, 100, 100]
        assert vectors == [embed(chunk.text) for chunk in chunks]
        assert task.stats.successful == 250
        assert task.stats.requests == 3

    @pytest.mark.asyncio
    async def test_embed_should_rotate_credentials_across_batches(
        self, fake_embeddings, rotator, sleep
    ) -> None:
        task = EmbeddingTask(fake_embeddings, rotator, batch_size=10, sleep=sleep)

        await task.embed(make_chunks(30))

        assert sorted(fake_embeddings.credential_ids) == ["key-1", "key-2", "key-3"]
        assert set(fake_embeddings.task_hints) == {TaskHint.RETRIEVAL_DOCUMENT}

    @pytest.mark.asyncio
    async def test_embed_should_return_empty_list_for_no_chunks(
        self, fake_embeddings, rotator
    ) -> None:
        assert await EmbeddingTask(fake_embeddings, rotator).embed([]) == []


class TestEmbeddingTaskRetry:
    """Test suite for sub-batch retry behaviour."""

    @pytest.mark.asyncio
    async def test_embed_should_retry_transient_failure_with_new_credential(
        self, make_embeddings, rotator, sleep
    ) -> None:
        # Arrange
        service = make_embeddings(script=[TransientProviderError("503 unavailable")])
        task = EmbeddingTask(service, rotator, batch_size=10, base_delay=1.0, sleep=sleep)

        # Act
        vectors = await task.embed(make_chunks(3))

        # Assert
        assert all(vector is not None for vector in vectors)
        assert service.credential_ids == ["key-1", "key-2"]
        assert sleep.delays == [1.0]
        assert rotator.stats()[0].failure_count == 1

    @pytest.mark.asyncio
    async def test_embed_should_wrap_unexpected_errors_as_transient(
        self, make_embeddings, rotator, sleep
    ) -> None:
        service = make_embeddings(script=[RuntimeError("socket closed")])
        task = EmbeddingTask(service, rotator, batch_size=10, sleep=sleep)

        vectors = await task.embed(make_chunks(2))

        assert all(vector is not None for vector in vectors)
        assert len(service.batch_sizes) == 2

    @pytest.mark.asyncio
    async def test_embed_should_retry_when_vector_count_is_wrong(
        self, make_embeddings, rotator, sleep
    ) -> None:
        """Test a response with a missing vector counts as a failed attempt."""
        service = make_embeddings(script=["short"])
        task = EmbeddingTask(service, rotator, batch_size=10, sleep=sleep)

        vectors = await task.embed(make_chunks(4))

        assert all(vector is not None for vector in vectors)
        assert service.batch_sizes == [4, 4]

    @pytest.mark.asyncio
    async def test_embed_should_wait_out_single_credential_rate_limit(
        self, make_embeddings, clock, sleep
    ) -> None:
        """Test one credential throttled for 30s: the retry waits for the cooldown."""
        # Arrange
        rotator = CredentialRotator.from_keys(["only"], clock=clock)
        service = make_embeddings(script=[RateLimitError("429 quota", retry_after=30.0)])
        task = EmbeddingTask(service, rotator, batch_size=10, base_delay=1.0, sleep=sleep)

        # Act
        vectors = await task.embed(make_chunks(2))

        # Assert
        assert all(vector is not None for vector in vectors)
        assert sleep.delays == [30.0]
        assert rotator.degraded_selections == 0
        assert task.stats.rate_limit_hits == 1

    @pytest.mark.asyncio
    async def test_embed_should_cap_cooldown_wait(self, make_embeddings, clock, sleep) -> None:
        rotator = CredentialRotator.from_keys(["only"], clock=clock)
        service = make_embeddings(script=[RateLimitError("429", retry_after=600.0)])
        task = EmbeddingTask(service, rotator, batch_size=10, max_cooldown_wait=60.0, sleep=sleep)

        await task.embed(make_chunks(1))

        assert sleep.delays == [60.0]


class TestEmbeddingTaskFallback:
    """Test suite for individual fallback after a failed sub-batch."""

    @pytest.mark.asyncio
    async def test_embed_should_isolate_unembeddable_chunk(
        self, fake_embeddings, rotator, sleep
    ) -> None:
        # Arrange
        task = EmbeddingTask(fake_embeddings, rotator, batch_size=10, individual_delay=0.1, sleep=sleep)
        chunks = make_chunks(3, poison_at={1})

        # Act
        vectors = await task.embed(chunks)

        # Assert
        assert vectors[0] is not None
        assert vectors[1] is None
        assert vectors[2] is not None
        assert fake_embeddings.batch_sizes == [3, 1, 1, 1]
        assert task.stats.fallbacks == 1
        assert task.stats.failed == 1
        assert sleep.delays == [0.1, 0.1]

    @pytest.mark.asyncio
    async def test_embed_should_fall_back_after_exhausting_retries(
        self, make_embeddings, rotator, sleep
    ) -> None:
        errors = [TransientProviderError("timeout")] * 3
        service = make_embeddings(script=errors)
        task = EmbeddingTask(service, rotator, batch_size=10, max_retries=3, sleep=sleep)

        vectors = await task.embed(make_chunks(2))

        assert all(vector is not None for vector in vectors)
        assert service.batch_sizes == [2, 2, 2, 1, 1]


class TestEmbeddingTaskQueryAndCancel:
    """Test suite for embed_query() and cancellation."""

    @pytest.mark.asyncio
    async def test_embed_query_should_use_query_hint(
        self, fake_embeddings, rotator, embed
    ) -> None:
        vector = await EmbeddingTask(fake_embeddings, rotator).embed_query("bail conditions")

        assert vector == embed("bail conditions")
        assert fake_embeddings.task_hints == [TaskHint.RETRIEVAL_QUERY]

    @pytest.mark.asyncio
    async def test_embed_query_should_reject_empty_query(self, fake_embeddings, rotator) -> None:
        with pytest.raises(PermanentInputError):
            await EmbeddingTask(fake_embeddings, rotator).embed_query("  ")

    @pytest.mark.asyncio
    async def test_embed_should_skip_batches_once_cancelled(
        self, fake_embeddings, rotator
    ) -> None:
        # Arrange
        token = CancellationToken()
        token.cancel()
        task = EmbeddingTask(fake_embeddings, rotator, batch_size=2, cancellation=token)

        # Act
        vectors = await task.embed(make_chunks(4))

        # Assert
        assert vectors == [None, None, None, None]
        assert fake_embeddings.batch_sizes == []
