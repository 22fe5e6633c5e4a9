"""
Retrieval engine facade.

Wires the credential rotator, ingestion tasks, keyword index cache and
hybrid search engine around one set of storage backends and exposes the
operations callers use: ingest, query, delete, facets and stats.

Dependencies: All core modules, boundary adapters, configs
System role: Public entry point of the retrieval core (coordinates only)
"""

import logging
from dataclasses import asdict
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from retrieval_core.boundary.db import (
    FacetValue,
    MetadataStats,
    SQLStructuredStore,
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from retrieval_core.boundary.embeddings.base import EmbeddingService
from retrieval_core.boundary.embeddings.langchain_embeddings import (
    LangChainEmbeddingService,
    google_embeddings_factory,
)
from retrieval_core.boundary.vdb import VectorStore, create_vector_store
from retrieval_core.configs.settings import Settings, get_settings
from retrieval_core.core.credentials import CredentialRotator
from retrieval_core.core.document_processing.orchestrator import (
    IngestionOrchestrator,
    ProgressCallback,
)
from retrieval_core.core.document_processing.tasks import (
    ChunkingTask,
    DocumentSavingTask,
    EmbeddingTask,
    MetadataExtractionTask,
    VectorStoreTask,
)
from retrieval_core.core.search.hybrid_search import HybridSearchEngine
from retrieval_core.core.search.index_cache import KeywordIndexCache, linkage_corpus_loader
from retrieval_core.core.search.metadata_filter import MetadataFilterSearch
from retrieval_core.core.search.reranking import Reranker
from retrieval_core.models.document import Document
from retrieval_core.models.ingestion import IngestionReport
from retrieval_core.models.search import SearchCandidate, SearchOptions
from retrieval_core.observability.logger import configure_logging

logger = logging.getLogger(__name__)


class RetrievalEngine:
    """Ingestion and hybrid retrieval over shared storage backends."""

    def __init__(
        self,
        orchestrator: IngestionOrchestrator,
        search_engine: HybridSearchEngine,
        rotator: CredentialRotator,
        keyword_cache: KeywordIndexCache,
        vector_store: VectorStore,
        metadata_search: MetadataFilterSearch,
        db_engine: AsyncEngine | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._search_engine = search_engine
        self._rotator = rotator
        self._keyword_cache = keyword_cache
        self._vector_store = vector_store
        self._metadata_search = metadata_search
        self._db_engine = db_engine

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        embedding_service: EmbeddingService | None = None,
        vector_store: VectorStore | None = None,
        session_factory: async_sessionmaker | None = None,
        reranker: Reranker | None = None,
        on_progress: ProgressCallback | None = None,
        configure_logs: bool = False,
    ) -> "RetrievalEngine":
        """
        Build an engine from configuration.

        Any backend not passed in is created from ``settings``: the Gemini
        embedding service, the configured vector store and an async
        SQLAlchemy engine for the metadata store and linkage index.

        Args:
            settings: Application settings (uses get_settings() if None)
            embedding_service: Embedding provider override
            vector_store: Vector store override
            session_factory: Session factory override
            reranker: Optional reranker for query-time fusion
            on_progress: Called with a BatchProgress after every ingestion batch
            configure_logs: Install the stdout log handler at settings.log_level

        Returns:
            RetrievalEngine: Ready engine; call init_storage() before first use

        Raises:
            ConfigurationError: When no API key is configured
        """
        settings = settings or get_settings()
        if configure_logs:
            configure_logging(settings.log_level)

        rotator = CredentialRotator.from_settings(settings.credentials)
        if embedding_service is None:
            embedding_service = LangChainEmbeddingService(
                google_embeddings_factory(
                    model=settings.embedding.model,
                    output_dimensionality=settings.embedding.output_dimensionality,
                )
            )
        if vector_store is None:
            vector_store = create_vector_store(settings.vector_store)

        db_engine = None
        if session_factory is None:
            db_engine = get_async_engine(settings.database)
            session_factory = get_async_session_factory(db_engine)

        keyword_cache = KeywordIndexCache(
            linkage_corpus_loader(session_factory),
            k1=settings.search.bm25_k1,
            b=settings.search.bm25_b,
        )
        embedding_task = EmbeddingTask.from_settings(
            settings.embedding, service=embedding_service, rotator=rotator
        )
        orchestrator = IngestionOrchestrator.from_settings(
            settings.ingestion,
            chunking_task=ChunkingTask(
                max_length=settings.ingestion.chunk_size,
                overlap_length=settings.ingestion.chunk_overlap,
            ),
            embedding_task=embedding_task,
            vector_store_task=VectorStoreTask(
                vector_store,
                session_factory,
                write_batch_size=settings.vector_store.write_batch_size,
            ),
            saving_task=DocumentSavingTask(
                session_factory, db_batch_size=settings.ingestion.db_batch_size
            ),
            metadata_task=MetadataExtractionTask(),
            keyword_cache=keyword_cache,
            on_progress=on_progress,
        )
        metadata_search = MetadataFilterSearch(SQLStructuredStore(session_factory))
        search_engine = HybridSearchEngine(
            embedding_task=embedding_task,
            vector_store=vector_store,
            keyword_cache=keyword_cache,
            metadata_search=metadata_search,
            reranker=reranker,
            settings=settings.search,
        )
        return cls(
            orchestrator=orchestrator,
            search_engine=search_engine,
            rotator=rotator,
            keyword_cache=keyword_cache,
            vector_store=vector_store,
            metadata_search=metadata_search,
            db_engine=db_engine,
        )

    async def init_storage(self) -> None:
        """Create metadata and linkage tables when the engine owns the database."""
        if self._db_engine is not None:
            await init_models(self._db_engine)

    async def ingest(self, documents: Sequence[Document]) -> IngestionReport:
        return await self._orchestrator.ingest(documents)

    async def query(
        self,
        text: str,
        partition_key: str,
        options: SearchOptions | None = None,
    ) -> list[SearchCandidate]:
        return await self._search_engine.query(text, partition_key, options)

    async def delete_document(self, partition_key: str, document_id: str) -> int:
        """Remove a document; returns the number of vectors deleted."""
        return await self._orchestrator.delete_document(partition_key, document_id)

    async def facets(self, partition_key: str, field: str) -> list[FacetValue]:
        """
        Distinct values of a filter field (court, year, case_type, jurisdiction,
        bench_type) within a partition.

        Raises:
            ValueError: When ``field`` is not a filter field
        """
        return await self._metadata_search.facets(partition_key, field)

    async def metadata_stats(self, partition_key: str) -> MetadataStats:
        """Metadata-store totals for a partition."""
        return await self._metadata_search.stats(partition_key)

    def cancel(self) -> None:
        self._orchestrator.cancel()

    def stats(self) -> dict[str, Any]:
        return {
            "credentials": [asdict(snapshot) for snapshot in self._rotator.stats()],
            "degraded_selections": self._rotator.degraded_selections,
            "embedding": self._orchestrator.embedding_stats,
            "search": self._search_engine.stats(),
        }

    async def close(self) -> None:
        """Release vector store and database connections."""
        close = getattr(self._vector_store, "close", None)
        if close is not None:
            await close()
        if self._db_engine is not None:
            await self._db_engine.dispose()
        logger.info(f"{__name__}:close - Connections released")
