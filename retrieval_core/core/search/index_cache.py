"""
Keyword index cache.

Holds one KeywordIndex per partition, built lazily from the chunk texts in
the linkage table and rebuilt wholesale after invalidation.

Dependencies: asyncio, sqlalchemy, retrieval_core.boundary.db
System role: Keeps the keyword path in sync with ingestion and deletes
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from sqlalchemy.ext.asyncio import async_sessionmaker

from retrieval_core.boundary.db.CRUD.document_vector_crud import DocumentVectorCRUD
from retrieval_core.core.search.keyword_index import KeywordDocument, KeywordIndex

logger = logging.getLogger(__name__)

CorpusLoader = Callable[[str], Awaitable[list[KeywordDocument]]]


def linkage_corpus_loader(session_factory: async_sessionmaker) -> CorpusLoader:
    """Loader reading every linked chunk of a partition from the database."""
    crud = DocumentVectorCRUD()

    async def _load(partition_key: str) -> list[KeywordDocument]:
        async with session_factory() as session:
            rows = await crud.get_by_namespace(session, partition_key)
        return [
            KeywordDocument(
                id=row.vector_id,
                text=row.text,
                document_id=row.document_id,
                metadata={"ordinal": row.ordinal},
            )
            for row in rows
        ]

    return _load


class KeywordIndexCache:
    """Per-partition KeywordIndex instances."""

    def __init__(self, loader: CorpusLoader, k1: float = 1.5, b: float = 0.75) -> None:
        """
        Initialize cache.

        Args:
            loader: Returns the keyword corpus of a partition
            k1: BM25 term-frequency saturation
            b: BM25 length normalization
        """
        self._loader = loader
        self.k1 = k1
        self.b = b
        self._indexes: dict[str, KeywordIndex] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self.builds = 0

    async def get(self, partition_key: str) -> KeywordIndex:
        """Cached index for a partition, building it if missing."""
        index = self._indexes.get(partition_key)
        if index is not None:
            return index

        lock = self._locks.setdefault(partition_key, asyncio.Lock())
        async with lock:
            index = self._indexes.get(partition_key)
            if index is None:
                documents = await self._loader(partition_key)
                index = KeywordIndex(k1=self.k1, b=self.b)
                index.build_index(documents)
                self._indexes[partition_key] = index
                self.builds += 1
                logger.info(
                    f"{__name__}:get - Built keyword index for {partition_key} "
                    f"({len(documents)} chunks)"
                )
        return index

    def invalidate(self, partition_key: str | None = None) -> None:
        """Drop one partition's index, or every index when None."""
        if partition_key is None:
            self._indexes.clear()
        else:
            self._indexes.pop(partition_key, None)

    def stats(self) -> dict[str, Any]:
        return {
            "cached_partitions": sorted(self._indexes),
            "builds": self.builds,
            "indexes": {key: index.stats() for key, index in self._indexes.items()},
        }
