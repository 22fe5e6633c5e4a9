"""
Hybrid search engine.

Runs vector similarity, BM25 keyword and metadata filter search
concurrently, fuses their per-path normalized scores into one composite
ranking, then removes near-duplicates, deduplicates, tags sources and
validates the result set.

Dependencies: asyncio, retrieval_core.core.search, retrieval_core.boundary.vdb
System role: Query-time entry point of the retrieval core
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Sequence

from retrieval_core.boundary.db.structured_store import StructuredRow
from retrieval_core.boundary.vdb.base import VectorStore
from retrieval_core.boundary.vdb.vector_schemas import VectorSearchResult
from retrieval_core.configs.search import SearchSettings
from retrieval_core.core.document_processing.tasks.embedding_task import EmbeddingTask
from retrieval_core.core.exceptions import AllRetrievalPathsFailedError, RetrievalPathError
from retrieval_core.core.search.deduplication import deduplicate, text_fingerprint
from retrieval_core.core.search.index_cache import KeywordIndexCache
from retrieval_core.core.search.keyword_index import KeywordHit
from retrieval_core.core.search.metadata_filter import MetadataFilterSearch, extract_filters
from retrieval_core.core.search.reranking import Reranker
from retrieval_core.core.search.scoring import FusionWeights, normalize_scores
from retrieval_core.core.search.validation import ResultValidator
from retrieval_core.models.search import (
    FilterPredicates,
    RetrievalPath,
    SearchCandidate,
    SearchOptions,
)
from retrieval_core.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

# Payload keys that describe the vector point rather than the document
_INTERNAL_PAYLOAD_KEYS = frozenset({"text", "document_id", "chunk_id", "ordinal", "partition_key"})


class HybridSearchEngine:
    """Fuse semantic, keyword and metadata retrieval into one ranking."""

    def __init__(
        self,
        embedding_task: EmbeddingTask,
        vector_store: VectorStore,
        keyword_cache: KeywordIndexCache,
        metadata_search: MetadataFilterSearch,
        reranker: Reranker | None = None,
        settings: SearchSettings | None = None,
        namespace_for: Callable[[str], str] | None = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            embedding_task: Embeds the query text
            vector_store: Vector similarity search
            keyword_cache: Per-partition BM25 indexes
            metadata_search: Predicate search over the structured store
            reranker: Optional reranker
            settings: Fusion weights, thresholds and timeouts
            namespace_for: Maps a partition key to a vector namespace
        """
        self._embedding_task = embedding_task
        self._vector_store = vector_store
        self._keyword_cache = keyword_cache
        self._metadata_search = metadata_search
        self._reranker = reranker
        self.settings = settings or SearchSettings()
        self._namespace_for = namespace_for or (lambda partition_key: partition_key)
        self._weights = FusionWeights.from_settings(self.settings)
        self._validator = ResultValidator(
            min_text_length=self.settings.min_text_length,
            quality_threshold=self.settings.quality_threshold,
        )

    async def query(
        self,
        text: str,
        partition_key: str,
        options: SearchOptions | None = None,
    ) -> list[SearchCandidate]:
        """
        Ranked, deduplicated and validated candidates for a query.

        Args:
            text: Free-text query
            partition_key: Tenant/workspace scope
            options: top_n, similarity threshold, explicit filters, strict mode

        Returns:
            list[SearchCandidate]: At most ``top_n`` candidates, best first

        Raises:
            AllRetrievalPathsFailedError: Every path failed and strict mode is on
        """
        options = options or SearchOptions(
            top_n=self.settings.top_n,
            similarity_threshold=self.settings.similarity_threshold,
            strict=self.settings.strict,
        )
        filters = options.filters if options.filters is not None else extract_filters(text)
        limit = options.top_n * self.settings.candidate_multiplier
        timeout = options.path_timeout or self.settings.path_timeout

        (semantic, semantic_error), (keyword, keyword_error), (metadata, metadata_error) = (
            await asyncio.gather(
                self._run_path(
                    RetrievalPath.SEMANTIC,
                    lambda: self._semantic_path(text, partition_key, limit, options.similarity_threshold),
                    timeout,
                ),
                self._run_path(
                    RetrievalPath.KEYWORD,
                    lambda: self._keyword_path(text, partition_key, limit),
                    timeout,
                ),
                self._run_path(
                    RetrievalPath.METADATA,
                    lambda: self._metadata_path(filters, partition_key, limit),
                    timeout,
                ),
            )
        )

        errors = [e for e in (semantic_error, keyword_error, metadata_error) if e is not None]
        if len(errors) == 3:
            if options.strict:
                raise AllRetrievalPathsFailedError(
                    "All retrieval paths failed",
                    details={"errors": [str(e) for e in errors]},
                )
            log_with_context(
                logger,
                logging.ERROR,
                f"{__name__}:query - All retrieval paths failed, returning no results",
                partition_key=partition_key,
                errors=[error.message for error in errors],
            )
            return []

        logger.info(
            f"{__name__}:query - Semantic: {len(semantic)}, Keyword: {len(keyword)}, "
            f"Metadata: {len(metadata)}",
            extra={"partition_key": partition_key, "failed_paths": [e.path for e in errors]},
        )

        candidates = self._merge(semantic, keyword, metadata)
        weights = await self._apply_reranker(text, candidates, timeout)
        ranked = self._rank(candidates, weights)
        ranked = self._drop_near_duplicates(ranked)
        ranked = deduplicate(ranked, self.settings.dedup_prefix_length)
        await self._enrich(ranked, partition_key)
        for candidate in ranked:
            candidate.citation = candidate.metadata.get("citation") or None

        validated = self._validator.validate(ranked)[: options.top_n]
        self._tag_sources(validated)
        return validated

    async def _run_path(
        self,
        path: RetrievalPath,
        factory: Callable[[], Awaitable[list]],
        timeout: float,
    ) -> tuple[list, RetrievalPathError | None]:
        try:
            return await asyncio.wait_for(factory(), timeout=timeout), None
        except asyncio.TimeoutError:
            error = RetrievalPathError(path.value, f"{path.value} path timed out after {timeout}s")
        except Exception as e:
            error = RetrievalPathError(path.value, f"{path.value} path failed: {e}")
        logger.warning(f"{__name__}:_run_path - {error.message}")
        return [], error

    async def _semantic_path(
        self,
        text: str,
        partition_key: str,
        limit: int,
        threshold: float,
    ) -> list[VectorSearchResult]:
        vector = await self._embedding_task.embed_query(text)
        return await self._vector_store.similarity_search(
            self._namespace_for(partition_key), vector, limit, threshold
        )

    async def _keyword_path(self, text: str, partition_key: str, limit: int) -> list[KeywordHit]:
        index = await self._keyword_cache.get(partition_key)
        return index.search(text, top_k=limit)

    async def _metadata_path(
        self,
        filters: FilterPredicates,
        partition_key: str,
        limit: int,
    ) -> list[StructuredRow]:
        return await self._metadata_search.search(filters, partition_key, limit)

    def _merge(
        self,
        semantic: Sequence[VectorSearchResult],
        keyword: Sequence[KeywordHit],
        metadata: Sequence[StructuredRow],
    ) -> list[SearchCandidate]:
        candidates: dict[str, SearchCandidate] = {}

        semantic_scores = normalize_scores({hit.id: hit.score for hit in semantic})
        for hit in semantic:
            candidate = candidates.setdefault(
                hit.id,
                SearchCandidate(
                    id=hit.id,
                    document_id=hit.document_id,
                    text=hit.text,
                    metadata={
                        k: v for k, v in hit.payload.items() if k not in _INTERNAL_PAYLOAD_KEYS
                    },
                ),
            )
            candidate.scores.semantic = semantic_scores[hit.id]
            candidate.paths.semantic = True

        keyword_scores = normalize_scores({hit.id: hit.score for hit in keyword})
        for hit in keyword:
            candidate = candidates.get(hit.id)
            if candidate is None:
                candidate = SearchCandidate(
                    id=hit.id,
                    document_id=hit.document.document_id,
                    text=hit.document.text,
                )
                candidates[hit.id] = candidate
            candidate.scores.keyword = keyword_scores[hit.id]
            candidate.paths.keyword = True

        metadata_scores = normalize_scores({row.document_id: row.score for row in metadata})
        by_document: dict[str, list[SearchCandidate]] = {}
        for candidate in candidates.values():
            by_document.setdefault(candidate.document_id, []).append(candidate)
        for row in metadata:
            matched = by_document.get(row.document_id)
            if not matched:
                matched = [
                    SearchCandidate(
                        id=row.document_id,
                        document_id=row.document_id,
                        text=row.text,
                        metadata=dict(row.metadata),
                    )
                ]
                candidates.setdefault(row.document_id, matched[0])
            for candidate in matched:
                candidate.scores.metadata = metadata_scores[row.document_id]
                candidate.paths.metadata = True
                for key, value in row.metadata.items():
                    candidate.metadata.setdefault(key, value)

        return list(candidates.values())

    async def _apply_reranker(
        self,
        text: str,
        candidates: list[SearchCandidate],
        timeout: float,
    ) -> FusionWeights:
        if self._reranker is None or not candidates:
            return self._weights.without_reranker()
        try:
            raw = await asyncio.wait_for(
                self._reranker.rerank(text, [c.text for c in candidates]), timeout=timeout
            )
        except Exception as e:
            logger.warning(f"{__name__}:_apply_reranker - Reranker failed, skipping: {e}")
            return self._weights.without_reranker()
        if len(raw) != len(candidates):
            logger.warning(
                f"{__name__}:_apply_reranker - Reranker returned {len(raw)} scores "
                f"for {len(candidates)} candidates, skipping"
            )
            return self._weights.without_reranker()

        normalized = normalize_scores({c.id: score for c, score in zip(candidates, raw)})
        for candidate in candidates:
            candidate.scores.reranker = normalized[candidate.id]
        return self._weights

    def _rank(
        self,
        candidates: list[SearchCandidate],
        weights: FusionWeights,
    ) -> list[SearchCandidate]:
        bonus = 1 + self.settings.multi_path_bonus
        for candidate in candidates:
            score = weights.composite(candidate.scores)
            if candidate.paths.count() >= 2:
                score *= bonus
            candidate.composite_score = score
        return sorted(candidates, key=lambda c: c.priority_key())

    def _drop_near_duplicates(self, ranked: list[SearchCandidate]) -> list[SearchCandidate]:
        """Penalize then remove candidates repeating a higher-ranked leading text."""
        kept: list[SearchCandidate] = []
        seen: set[str] = set()
        for candidate in ranked:
            fingerprint = text_fingerprint(candidate.text, self.settings.dedup_prefix_length)
            if fingerprint in seen:
                candidate.composite_score *= 1 - self.settings.near_duplicate_penalty
                logger.debug(
                    f"{__name__}:_drop_near_duplicates - Removed {candidate.id} "
                    f"(penalized to {candidate.composite_score:.3f})"
                )
                continue
            seen.add(fingerprint)
            kept.append(candidate)
        return kept

    async def _enrich(self, candidates: list[SearchCandidate], partition_key: str) -> None:
        document_ids = sorted({c.document_id for c in candidates if c.document_id})
        try:
            stored = await self._metadata_search.enrich(document_ids, partition_key)
        except Exception as e:
            logger.warning(f"{__name__}:_enrich - Metadata enrichment skipped: {e}")
            return
        for candidate in candidates:
            for key, value in stored.get(candidate.document_id, {}).items():
                candidate.metadata.setdefault(key, value)

    @staticmethod
    def _tag_sources(candidates: list[SearchCandidate]) -> None:
        for position, candidate in enumerate(candidates, start=1):
            candidate.source_tag = f"[Source {position}]"
            metadata: dict[str, Any] = candidate.metadata
            citation = candidate.citation or "Unknown"
            court = metadata.get("court") or "Unknown Court"
            year = metadata.get("year") or "Unknown Year"
            candidate.grounding_instruction = (
                f"When citing this source, use: {citation} ({court}, {year}). "
                "Always verify the exact quote from the source text before citing."
            )

    def stats(self) -> dict[str, Any]:
        return {
            "weights": asdict(self._weights),
            "reranker": self._reranker is not None,
            "keyword_cache": self._keyword_cache.stats(),
        }
