"""
Vector persistence task.

Writes embedding vectors to the vector store in sub-batches and records
the document-to-vector linkage in the database so a document can later be
deleted point-by-point.

Dependencies: sqlalchemy, retrieval_core.boundary.vdb, retrieval_core.boundary.db
System role: Third stage of document ingestion pipeline; document deletes
"""

import logging
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from retrieval_core.boundary.db.CRUD.document_vector_crud import DocumentVectorCRUD
from retrieval_core.boundary.vdb.base import VectorStore
from retrieval_core.core.exceptions import PersistenceError
from retrieval_core.models.embedding import EmbeddingVector

logger = logging.getLogger(__name__)


class VectorStoreTask:
    """Upsert vectors with halve-and-retry and maintain the linkage index."""

    def __init__(
        self,
        store: VectorStore,
        session_factory: async_sessionmaker,
        write_batch_size: int = 2000,
    ) -> None:
        """
        Initialize vector store task.

        Args:
            store: Vector store adapter
            session_factory: Async session factory for the linkage table
            write_batch_size: Points per upsert request

        Raises:
            ValueError: When write_batch_size is less than 1
        """
        if write_batch_size < 1:
            raise ValueError("write_batch_size must be at least 1")
        self._store = store
        self._session_factory = session_factory
        self._linkage = DocumentVectorCRUD()
        self.write_batch_size = write_batch_size
        self._ensured: set[str] = set()

    async def upsert(self, namespace: str, vectors: Sequence[EmbeddingVector]) -> bool:
        """
        Persist vectors and their linkage rows.

        Args:
            namespace: Destination collection (partition key)
            vectors: Vectors to write

        Returns:
            bool: True once every sub-batch and the linkage rows are written

        Raises:
            PersistenceError: When a sub-batch fails again after being halved,
                or the linkage write fails
        """
        if not vectors:
            return True

        if namespace not in self._ensured:
            await self._store.ensure_collection(namespace, len(vectors[0].vector))
            self._ensured.add(namespace)

        for start in range(0, len(vectors), self.write_batch_size):
            await self._write_sub_batch(namespace, vectors[start : start + self.write_batch_size])

        await self._write_linkage(namespace, vectors)
        await self._prune_stale(namespace, vectors)
        logger.debug(
            f"{__name__}:upsert - Persisted {len(vectors)} vectors",
            extra={"namespace": namespace},
        )
        return True

    async def delete(self, namespace: str, document_id: str) -> int:
        """
        Remove a document's vectors and linkage rows.

        Returns:
            int: Number of vectors removed (0 when nothing was linked)

        Raises:
            PersistenceError: When the store or linkage delete fails
        """
        try:
            async with self._session_factory() as session:
                vector_ids = await self._linkage.get_vector_ids(session, namespace, document_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Linkage lookup failed: {e}", operation="delete") from e

        if not vector_ids:
            logger.debug(
                f"{__name__}:delete - No vectors linked to {document_id}",
                extra={"namespace": namespace},
            )
            return 0

        await self._store.delete_by_ids(namespace, vector_ids)
        try:
            async with self._session_factory() as session:
                await self._linkage.delete_by_document(session, namespace, document_id)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Linkage delete failed: {e}", operation="delete") from e

        logger.info(
            f"{__name__}:delete - Removed {len(vector_ids)} vectors of {document_id}",
            extra={"namespace": namespace},
        )
        return len(vector_ids)

    async def _prune_stale(self, namespace: str, vectors: Sequence[EmbeddingVector]) -> None:
        """Drop points a document linked earlier that this write did not produce."""
        current: dict[str, set[str]] = {}
        for vector in vectors:
            current.setdefault(vector.document_id, set()).add(vector.id)

        try:
            async with self._session_factory() as session:
                stale = [
                    vector_id
                    for document_id, ids in current.items()
                    for vector_id in await self._linkage.get_vector_ids(
                        session, namespace, document_id
                    )
                    if vector_id not in ids
                ]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Linkage lookup failed: {e}", operation="prune") from e

        if not stale:
            return

        await self._store.delete_by_ids(namespace, stale)
        try:
            async with self._session_factory() as session:
                await self._linkage.delete_by_vector_ids(session, namespace, stale)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Linkage prune failed: {e}", operation="prune") from e
        logger.info(
            f"{__name__}:_prune_stale - Removed {len(stale)} superseded vectors",
            extra={"namespace": namespace, "documents": len(current)},
        )

    async def _write_sub_batch(self, namespace: str, batch: Sequence[EmbeddingVector]) -> None:
        try:
            await self._store.upsert(namespace, batch)
            return
        except Exception as e:
            logger.warning(
                f"{__name__}:_write_sub_batch - Upsert of {len(batch)} points failed, "
                f"retrying with halved batches: {e}"
            )

        middle = max(1, len(batch) // 2)
        for half in (batch[:middle], batch[middle:]):
            if not half:
                continue
            try:
                await self._store.upsert(namespace, half)
            except Exception as e:
                raise PersistenceError(
                    f"Vector upsert failed after halving: {e}",
                    operation="upsert",
                    details={"namespace": namespace, "points": len(half)},
                ) from e

    async def _write_linkage(self, namespace: str, vectors: Sequence[EmbeddingVector]) -> None:
        rows = [
            {
                "document_id": vector.document_id,
                "vector_id": vector.id,
                "ordinal": vector.ordinal,
                "text": vector.text,
            }
            for vector in vectors
        ]
        try:
            async with self._session_factory() as session:
                await self._linkage.bulk_create(session, namespace, rows)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Linkage write failed: {e}",
                operation="linkage",
                details={"namespace": namespace, "rows": len(rows)},
            ) from e
