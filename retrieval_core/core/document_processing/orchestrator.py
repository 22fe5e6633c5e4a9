"""
Parallel ingestion orchestrator.

Coordinates metadata extraction, chunking, embedding and vector
persistence for many documents. Documents are processed in outer batches;
inside a batch a BoundedExecutor runs documents concurrently, and each
document's embedding step fans out again over chunk sub-batches.

Dependencies: All task modules, retrieval_core.core.concurrency
System role: Pipeline orchestration (coordinates only)
"""

import asyncio
import inspect
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from retrieval_core.configs.ingestion import IngestionSettings
from retrieval_core.core.concurrency import (
    BoundedExecutor,
    CancellationToken,
    RetryPolicy,
    linear_backoff,
)
from retrieval_core.core.document_processing.tasks import (
    ChunkingTask,
    DocumentSavingTask,
    EmbeddingTask,
    MetadataExtractionTask,
    VectorStoreTask,
)
from retrieval_core.core.exceptions import (
    ExecutionCancelledError,
    PermanentInputError,
    TransientProviderError,
)
from retrieval_core.core.search.index_cache import KeywordIndexCache
from retrieval_core.models.document import Document, DocumentStatus
from retrieval_core.models.embedding import EmbeddingVector
from retrieval_core.models.ingestion import (
    BatchProgress,
    DocumentOutcome,
    FailedDocument,
    IngestionReport,
)
from retrieval_core.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], Any]


@dataclass
class _Processed:
    document: Document
    outcome: DocumentOutcome


def _advance(status: DocumentStatus, *documents: Document) -> None:
    for document in documents:
        document.status = status


class IngestionOrchestrator:
    """Orchestrate ingestion: extract metadata -> chunk -> embed -> persist."""

    def __init__(
        self,
        chunking_task: ChunkingTask,
        embedding_task: EmbeddingTask,
        vector_store_task: VectorStoreTask,
        saving_task: DocumentSavingTask,
        metadata_task: MetadataExtractionTask | None = None,
        keyword_cache: KeywordIndexCache | None = None,
        batch_size: int = 100,
        document_concurrency: int = 8,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        batch_pause: float = 0.1,
        on_progress: ProgressCallback | None = None,
        namespace_for: Callable[[str], str] | None = None,
        cancellation: CancellationToken | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            chunking_task: Splits documents into chunks
            embedding_task: Embeds chunks (shares this orchestrator's cancellation)
            vector_store_task: Persists vectors and linkage
            saving_task: Writes document records after each batch
            metadata_task: Optional pre-chunking metadata extraction
            keyword_cache: Keyword index cache invalidated after each batch
            batch_size: Documents per outer batch
            document_concurrency: Documents processed simultaneously
            retry_attempts: Attempts per document when no vectors were produced
            retry_delay: Base of the linear backoff between document attempts
            batch_pause: Pause between outer batches
            on_progress: Called with a BatchProgress after every batch
            namespace_for: Maps a partition key to a vector namespace
            cancellation: Token shared with the embedding stage
            sleep: Awaitable sleep used for pauses and backoff

        Raises:
            ValueError: When batch_size is less than 1
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self._chunking_task = chunking_task
        self._embedding_task = embedding_task
        self._vector_store_task = vector_store_task
        self._saving_task = saving_task
        self._metadata_task = metadata_task
        self._keyword_cache = keyword_cache
        self.batch_size = batch_size
        self.document_concurrency = document_concurrency
        self.batch_pause = batch_pause
        self._on_progress = on_progress
        self._namespace_for = namespace_for or (lambda partition_key: partition_key)
        self._sleep = sleep

        self.cancellation = cancellation or embedding_task.cancellation or CancellationToken()
        embedding_task.cancellation = self.cancellation

        self._retry = RetryPolicy(
            max_attempts=retry_attempts,
            backoff=linear_backoff(retry_delay),
            give_up_on=(PermanentInputError, ExecutionCancelledError),
            name="ingest_document",
            sleep=sleep,
        )

    @classmethod
    def from_settings(
        cls,
        settings: IngestionSettings,
        chunking_task: ChunkingTask,
        embedding_task: EmbeddingTask,
        vector_store_task: VectorStoreTask,
        saving_task: DocumentSavingTask,
        **kwargs,
    ) -> "IngestionOrchestrator":
        return cls(
            chunking_task=chunking_task,
            embedding_task=embedding_task,
            vector_store_task=vector_store_task,
            saving_task=saving_task,
            batch_size=settings.batch_size,
            document_concurrency=settings.document_concurrency,
            retry_attempts=settings.retry_attempts,
            retry_delay=settings.retry_delay,
            batch_pause=settings.batch_pause,
            **kwargs,
        )

    @property
    def embedding_stats(self) -> dict[str, int]:
        return self._embedding_task.stats.as_dict()

    def cancel(self) -> None:
        """Stop new documents and new embedding sub-batches from starting."""
        logger.warning(f"{__name__}:cancel - Ingestion cancellation requested")
        self.cancellation.cancel()

    async def ingest(self, documents: Sequence[Document]) -> IngestionReport:
        """
        Ingest documents in outer batches.

        Args:
            documents: Documents to ingest

        Returns:
            IngestionReport: Every document appears exactly once, either in
            ``succeeded`` or in ``failed``
        """
        self.cancellation.reset()
        report = IngestionReport()
        total = len(documents)
        if total == 0:
            return report

        batch_count = math.ceil(total / self.batch_size)
        start_time = time.perf_counter()
        logger.info(
            f"{__name__}:ingest - Starting ingestion of {total} documents "
            f"in {batch_count} batches",
            extra={"batch_size": self.batch_size, "concurrency": self.document_concurrency},
        )

        for batch_index in range(batch_count):
            batch = documents[batch_index * self.batch_size : (batch_index + 1) * self.batch_size]
            await self._ingest_batch(batch, report)

            elapsed = time.perf_counter() - start_time
            progress = BatchProgress(
                batch_index=batch_index,
                batch_count=batch_count,
                batch_size=len(batch),
                processed=report.total,
                failed=len(report.failed),
                elapsed_seconds=elapsed,
                rate_per_second=report.total / elapsed if elapsed > 0 else 0.0,
            )
            report.batches.append(progress)
            logger.info(
                f"{__name__}:ingest - Batch {batch_index + 1}/{batch_count} done: "
                f"{progress.processed}/{total} processed ({progress.percent:.1f}%), "
                f"{progress.failed} failed, {elapsed:.1f}s elapsed, "
                f"{progress.rate_per_second:.1f} docs/s"
            )
            await self._notify(progress)

            last = batch_index == batch_count - 1
            if not last and self.batch_pause > 0 and not self.cancellation.cancelled:
                await self._sleep(self.batch_pause)

        report.elapsed_seconds = time.perf_counter() - start_time
        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:ingest - Completed: {len(report.succeeded)} succeeded, "
            f"{len(report.failed)} failed, {len(report.partial)} partial "
            f"in {report.elapsed_seconds:.1f}s",
            failed_documents=[failure.document_id for failure in report.failed],
            errors=report.errors,
            embedding_stats=self._embedding_task.stats.as_dict(),
        )
        return report

    async def delete_document(self, partition_key: str, document_id: str) -> int:
        """
        Remove a document's vectors, linkage rows and metadata record.

        Returns:
            int: Number of vectors removed; 0 when the document had none
        """
        namespace = self._namespace_for(partition_key)
        removed = await self._vector_store_task.delete(namespace, document_id)
        await self._saving_task.delete(partition_key, document_id)
        if self._keyword_cache is not None:
            self._keyword_cache.invalidate(partition_key)
        return removed

    async def _ingest_batch(self, batch: Sequence[Document], report: IngestionReport) -> None:
        # Keyed by position: a batch may repeat a document ID.
        attempts = [0] * len(batch)

        async def _process(index: int, document: Document) -> _Processed:
            async def _once() -> _Processed:
                attempts[index] += 1
                return await self._process_once(document, attempts[index])

            return await self._retry.call(_once)

        executor = BoundedExecutor(self.document_concurrency, cancellation=self.cancellation)
        outcomes = await executor.run(
            [
                (lambda index=index, document=document: _process(index, document))
                for index, document in enumerate(batch)
            ]
        )

        processed: list[_Processed] = []
        for index, (document, outcome) in enumerate(zip(batch, outcomes)):
            if outcome.ok:
                processed.append(outcome.value)
                continue
            document.status = DocumentStatus.FAILED
            error = outcome.error
            report.failed.append(
                FailedDocument(
                    document_id=document.id,
                    error=f"{type(error).__name__}: {error}",
                    attempts=attempts[index],
                )
            )
            report.errors.add(str(error))

        if processed:
            saved = await self._saving_task.save_batch(
                [(item.document, item.outcome) for item in processed]
            )
            for document_id, message in saved.failed.items():
                report.errors.add(f"Metadata record for {document_id} not saved: {message}")

        for item in processed:
            report.succeeded.append(item.outcome.document_id)
            if item.outcome.partial:
                report.partial.append(item.outcome.document_id)

        if self._keyword_cache is not None:
            for partition_key in {item.document.partition_key for item in processed}:
                self._keyword_cache.invalidate(partition_key)

    async def _process_once(self, document: Document, attempt: int) -> _Processed:
        if self.cancellation.cancelled:
            raise ExecutionCancelledError(
                "Ingestion cancelled", details={"document_id": document.id}
            )

        source = document
        if self._metadata_task is not None:
            document = self._metadata_task.extract(document)

        chunks = self._chunking_task.chunk_document(document)
        _advance(DocumentStatus.CHUNKED, source, document)
        vectors = await self._embedding_task.embed(chunks)
        embedded = [
            EmbeddingVector.from_chunk(chunk, vector)
            for chunk, vector in zip(chunks, vectors)
            if vector is not None
        ]

        if not embedded:
            if self.cancellation.cancelled:
                raise ExecutionCancelledError(
                    "Ingestion cancelled before any chunk was embedded",
                    details={"document_id": document.id},
                )
            raise TransientProviderError(
                "No vectors produced",
                details={"document_id": document.id, "chunks": len(chunks)},
            )

        _advance(DocumentStatus.EMBEDDED, source, document)
        await self._vector_store_task.upsert(self._namespace_for(document.partition_key), embedded)
        _advance(DocumentStatus.PERSISTED, source, document)

        if len(embedded) < len(chunks):
            logger.warning(
                f"{__name__}:_process_once - Document {document.id} partially embedded "
                f"({len(embedded)}/{len(chunks)} chunks)"
            )

        return _Processed(
            document=document,
            outcome=DocumentOutcome(
                document_id=document.id,
                partition_key=document.partition_key,
                chunk_count=len(chunks),
                vector_count=len(embedded),
                attempts=attempt,
            ),
        )

    async def _notify(self, progress: BatchProgress) -> None:
        if self._on_progress is None:
            return
        result = self._on_progress(progress)
        if inspect.isawaitable(result):
            await result
