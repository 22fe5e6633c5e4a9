"""
Test suite for IngestionOrchestrator.

Tests outer batching, progress reporting, the accounting invariant
(every document is either succeeded or failed exactly once), document
retries, partial embeddings, the bulk-save fallback, cancellation and
document deletes.

System role: Verification of the ingestion pipeline end to end
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from retrieval_core.boundary.db.CRUD.document_record_crud import DocumentRecordCRUD
from retrieval_core.core.document_processing import IngestionOrchestrator
from retrieval_core.core.document_processing.tasks import (
    ChunkingTask,
    DocumentSavingTask,
    EmbeddingTask,
    MetadataExtractionTask,
    VectorStoreTask,
)
from retrieval_core.models.document import Document, DocumentMetadata, DocumentStatus


def make_documents(count: int, partition_key: str = "ws") -> list[Document]:
    return [
        Document(
            id=f"doc-{i}",
            text=f"Judgment number {i} concerning contract law and damages.",
            partition_key=partition_key,
        )
        for i in range(count)
    ]


@pytest.fixture
def build_orchestrator(fake_embeddings, rotator, vector_store, session_factory, sleep):
    """Factory wiring real tasks around the fakes."""

    def _build(service=None, **kwargs) -> IngestionOrchestrator:
        embedding_task = EmbeddingTask(
            service or fake_embeddings, rotator, batch_size=10, individual_delay=0, sleep=sleep
        )
        return IngestionOrchestrator(
            chunking_task=ChunkingTask(max_length=200, overlap_length=20),
            embedding_task=embedding_task,
            vector_store_task=VectorStoreTask(vector_store, session_factory),
            saving_task=DocumentSavingTask(session_factory),
            sleep=sleep,
            **kwargs,
        )

    return _build


class TestIngestionOrchestratorBatching:
    """Test suite for outer batching and progress."""

    @pytest.mark.asyncio
    async def test_ingest_should_process_documents_in_outer_batches(
        self, build_orchestrator, vector_store, sleep
    ) -> None:
        # Arrange
        progress = []
        orchestrator = build_orchestrator(batch_size=100, on_progress=progress.append)

        # Act
        report = await orchestrator.ingest(make_documents(250))

        # Assert
        assert [batch.batch_size for batch in report.batches] == [100, 100, 50]
        assert [p.processed for p in progress] == [100, 200, 250]
        assert progress[-1].percent == pytest.approx(100.0)
        assert len(report.succeeded) == 250
        assert report.failed == []
        assert vector_store.count("ws") == 250
        assert sleep.delays.count(orchestrator.batch_pause) == 2

    @pytest.mark.asyncio
    async def test_ingest_should_await_async_progress_callback(self, build_orchestrator) -> None:
        callback = AsyncMock()
        orchestrator = build_orchestrator(batch_size=2, on_progress=callback)

        await orchestrator.ingest(make_documents(3))

        assert callback.await_count == 2

    @pytest.mark.asyncio
    async def test_ingest_should_return_empty_report_for_no_documents(
        self, build_orchestrator
    ) -> None:
        report = await build_orchestrator().ingest([])

        assert report.total == 0
        assert report.batches == []


class TestIngestionOrchestratorAccounting:
    """Test suite for success and failure accounting."""

    @pytest.mark.asyncio
    async def test_ingest_should_account_for_every_document_once(self, build_orchestrator) -> None:
        # Arrange
        documents = make_documents(6)
        documents[2] = Document(id="empty-doc", text="   ", partition_key="ws")
        documents[4] = Document(id="poison-doc", text="POISON everywhere", partition_key="ws")
        orchestrator = build_orchestrator(batch_size=4)

        # Act
        report = await orchestrator.ingest(documents)

        # Assert
        failed_ids = [failure.document_id for failure in report.failed]
        assert sorted(failed_ids) == ["empty-doc", "poison-doc"]
        assert len(failed_ids) == len(set(failed_ids))
        assert set(report.succeeded).isdisjoint(failed_ids)
        assert report.total == len(documents)
        assert report.errors

    @pytest.mark.asyncio
    async def test_ingest_should_not_retry_permanent_input_errors(self, build_orchestrator) -> None:
        report = await build_orchestrator().ingest(
            [Document(id="empty-doc", text="", partition_key="ws")]
        )

        assert report.failed[0].attempts == 1
        assert "PermanentInputError" in report.failed[0].error

    @pytest.mark.asyncio
    async def test_ingest_should_retry_document_without_vectors(self, build_orchestrator) -> None:
        """Test a document whose every chunk fails is retried, then reported failed."""
        orchestrator = build_orchestrator(retry_attempts=3)

        report = await orchestrator.ingest(
            [Document(id="poison-doc", text="POISON text", partition_key="ws")]
        )

        assert report.failed[0].attempts == 3
        assert "No vectors produced" in report.failed[0].error

    @pytest.mark.asyncio
    async def test_ingest_should_accept_partially_embedded_document(
        self, build_orchestrator, vector_store, session_factory
    ) -> None:
        # Arrange
        paragraphs = [
            "First paragraph about the facts of the case " * 3,
            "Second paragraph containing POISON content " * 3,
            "Third paragraph with the final order of the court " * 3,
        ]
        document = Document(id="doc-p", text="\n\n".join(paragraphs), partition_key="ws")

        # Act
        report = await build_orchestrator().ingest([document])

        # Assert
        assert report.succeeded == ["doc-p"]
        assert report.partial == ["doc-p"]
        assert vector_store.count("ws") == 2
        async with session_factory() as session:
            record = await DocumentRecordCRUD().get_by_id(session, ("ws", "doc-p"))
        assert record.chunk_count == 3
        assert record.vector_count == 2


class TestIngestionOrchestratorPersistence:
    """Test suite for metadata records, fallback and deletes."""

    @pytest.mark.asyncio
    async def test_ingest_should_save_extracted_metadata(
        self, build_orchestrator, session_factory
    ) -> None:
        # Arrange
        document = Document(
            id="doc-sc",
            text="IN THE SUPREME COURT OF INDIA\nCivil Appeal concerning land acquisition.",
            metadata=DocumentMetadata(title="C.A. No. 12/2019 (05-06-2019)"),
            partition_key="ws",
        )
        orchestrator = build_orchestrator(metadata_task=MetadataExtractionTask())

        # Act
        await orchestrator.ingest([document])

        # Assert
        async with session_factory() as session:
            record = await DocumentRecordCRUD().get_by_id(session, ("ws", "doc-sc"))
        assert record.court == "Supreme Court of India"
        assert record.year == 2019
        assert record.case_type == "Civil Appeal"

    @pytest.mark.asyncio
    async def test_ingest_should_fall_back_to_individual_saves(
        self, build_orchestrator, session_factory
    ) -> None:
        # Arrange
        orchestrator = build_orchestrator()
        orchestrator._saving_task._records.bulk_upsert = AsyncMock(
            side_effect=SQLAlchemyError("bulk insert failed")
        )

        # Act
        report = await orchestrator.ingest(make_documents(3))

        # Assert
        assert len(report.succeeded) == 3
        async with session_factory() as session:
            assert await DocumentRecordCRUD().count(session) == 3

    @pytest.mark.asyncio
    async def test_ingest_should_invalidate_keyword_cache(self, build_orchestrator) -> None:
        cache = MagicMock()
        orchestrator = build_orchestrator(keyword_cache=cache)

        await orchestrator.ingest(make_documents(2, partition_key="tenant-b"))

        cache.invalidate.assert_called_once_with("tenant-b")

    @pytest.mark.asyncio
    async def test_delete_document_should_remove_vectors_and_record(
        self, build_orchestrator, vector_store, session_factory
    ) -> None:
        # Arrange
        orchestrator = build_orchestrator()
        await orchestrator.ingest(make_documents(2))

        # Act
        removed = await orchestrator.delete_document("ws", "doc-0")

        # Assert
        assert removed == 1
        assert vector_store.count("ws") == 1
        async with session_factory() as session:
            assert await DocumentRecordCRUD().exists(session, ("ws", "doc-0")) is False

    @pytest.mark.asyncio
    async def test_delete_document_should_be_noop_when_missing(self, build_orchestrator) -> None:
        assert await build_orchestrator().delete_document("ws", "never-ingested") == 0


class TestIngestionOrchestratorCancellation:
    """Test suite for cancel()."""

    @pytest.mark.asyncio
    async def test_cancel_should_fail_documents_not_yet_started(self, build_orchestrator) -> None:
        # Arrange
        orchestrator = None

        def cancel_after_first_batch(progress) -> None:
            orchestrator.cancel()

        orchestrator = build_orchestrator(batch_size=5, on_progress=cancel_after_first_batch)

        # Act
        report = await orchestrator.ingest(make_documents(12))

        # Assert
        assert len(report.succeeded) == 5
        assert len(report.failed) == 7
        assert all("ExecutionCancelledError" in f.error for f in report.failed)
        assert report.total == 12

    @pytest.mark.asyncio
    async def test_ingest_should_reset_cancellation_for_next_run(self, build_orchestrator) -> None:
        orchestrator = build_orchestrator()
        orchestrator.cancel()

        report = await orchestrator.ingest(make_documents(2))

        assert len(report.succeeded) == 2


class TestIngestionOrchestratorPartitions:
    """Test suite for partition isolation of records and deletes."""

    @pytest.mark.asyncio
    async def test_ingest_should_keep_same_document_id_per_partition(
        self, build_orchestrator, session_factory
    ) -> None:
        # Arrange
        orchestrator = build_orchestrator()
        crud = DocumentRecordCRUD()

        # Act
        await orchestrator.ingest(make_documents(1, partition_key="tenant-a"))
        await orchestrator.ingest(make_documents(1, partition_key="tenant-b"))

        # Assert
        async with session_factory() as session:
            assert await crud.exists(session, ("tenant-a", "doc-0")) is True
            assert await crud.exists(session, ("tenant-b", "doc-0")) is True

    @pytest.mark.asyncio
    async def test_delete_document_should_not_touch_other_partition(
        self, build_orchestrator, vector_store, session_factory
    ) -> None:
        # Arrange
        orchestrator = build_orchestrator()
        await orchestrator.ingest(make_documents(1, partition_key="tenant-a"))
        await orchestrator.ingest(make_documents(1, partition_key="tenant-b"))

        # Act
        await orchestrator.delete_document("tenant-a", "doc-0")

        # Assert
        assert vector_store.count("tenant-a") == 0
        assert vector_store.count("tenant-b") == 1
        async with session_factory() as session:
            crud = DocumentRecordCRUD()
            assert await crud.exists(session, ("tenant-a", "doc-0")) is False
            assert await crud.exists(session, ("tenant-b", "doc-0")) is True


class TestIngestionOrchestratorStatus:
    """Test suite for the document status lifecycle."""

    @pytest.mark.asyncio
    async def test_ingest_should_advance_status_through_each_stage(
        self, make_embeddings, vector_store, build_orchestrator, session_factory
    ) -> None:
        # Arrange
        document = make_documents(1)[0]
        seen: list[DocumentStatus] = []

        class ObservingEmbeddings(make_embeddings):
            async def embed_batch(self, texts, task_hint, credential):
                seen.append(document.status)
                return await super().embed_batch(texts, task_hint, credential)

        real_upsert = vector_store.upsert

        async def observing_upsert(namespace, points):
            seen.append(document.status)
            await real_upsert(namespace, points)

        vector_store.upsert = observing_upsert
        orchestrator = build_orchestrator(service=ObservingEmbeddings())

        # Act
        await orchestrator.ingest([document])

        # Assert
        assert seen == [DocumentStatus.CHUNKED, DocumentStatus.EMBEDDED]
        assert document.status == DocumentStatus.PERSISTED
        async with session_factory() as session:
            record = await DocumentRecordCRUD().get_by_id(session, ("ws", "doc-0"))
        assert record.status == "persisted"

    @pytest.mark.asyncio
    async def test_ingest_should_mark_failed_documents(self, build_orchestrator) -> None:
        documents = [
            Document(id="empty-doc", text="", partition_key="ws"),
            Document(id="poison-doc", text="POISON text", partition_key="ws"),
        ]

        await build_orchestrator(retry_attempts=1).ingest(documents)

        assert [d.status for d in documents] == [DocumentStatus.FAILED, DocumentStatus.FAILED]

    @pytest.mark.asyncio
    async def test_ingest_should_count_attempts_per_batch_entry(self, build_orchestrator) -> None:
        """Test repeated document IDs in one batch keep separate attempt counts."""
        documents = [
            Document(id="dup", text="POISON text", partition_key="ws"),
            Document(id="dup", text="Judgment concerning contract law.", partition_key="ws"),
        ]

        report = await build_orchestrator(retry_attempts=3).ingest(documents)

        assert [failure.attempts for failure in report.failed] == [3]
        assert report.succeeded == ["dup"]
