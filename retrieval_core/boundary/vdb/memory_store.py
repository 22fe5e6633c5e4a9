"""
In-memory vector store for development.

Keeps vectors in numpy arrays per namespace and ranks by cosine
similarity. Used for local runs and tests in place of Qdrant.

Dependencies: numpy
System role: Development vector store (local testing only)
"""

import logging
from typing import Any, Sequence

import numpy as np

from retrieval_core.boundary.vdb.vector_schemas import VectorSearchResult
from retrieval_core.core.exceptions import PersistenceError
from retrieval_core.models.embedding import EmbeddingVector

logger = logging.getLogger(__name__)


class _Collection:
    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self.ids: list[str] = []
        self.payloads: list[dict[str, Any]] = []
        self.matrix = np.zeros((0, dimension), dtype=np.float32)

    def upsert(self, point: EmbeddingVector) -> None:
        row = np.asarray(point.vector, dtype=np.float32)
        if point.id in self.ids:
            index = self.ids.index(point.id)
            self.matrix[index] = row
            self.payloads[index] = dict(point.payload)
            return
        self.ids.append(point.id)
        self.payloads.append(dict(point.payload))
        self.matrix = np.vstack([self.matrix, row[np.newaxis, :]])

    def remove(self, ids: set[str]) -> None:
        keep = [i for i, point_id in enumerate(self.ids) if point_id not in ids]
        self.ids = [self.ids[i] for i in keep]
        self.payloads = [self.payloads[i] for i in keep]
        self.matrix = self.matrix[keep] if keep else np.zeros((0, self.dimension), dtype=np.float32)


class InMemoryVectorStore:
    """Cosine-similarity vector store held in process memory."""

    def __init__(self) -> None:
        self._collections: dict[str, _Collection] = {}
        self.upsert_calls = 0

    async def ensure_collection(self, namespace: str, dimension: int) -> None:
        if namespace not in self._collections:
            self._collections[namespace] = _Collection(dimension)
            logger.debug(
                f"{__name__}:ensure_collection - Created {namespace} (dim={dimension})"
            )

    async def upsert(self, namespace: str, points: Sequence[EmbeddingVector]) -> None:
        """
        Insert or replace points.

        Raises:
            PersistenceError: Unknown namespace or dimension mismatch
        """
        self.upsert_calls += 1
        collection = self._collections.get(namespace)
        if collection is None:
            raise PersistenceError(
                f"Collection {namespace} does not exist", operation="upsert"
            )
        for point in points:
            if len(point.vector) != collection.dimension:
                raise PersistenceError(
                    f"Vector dimension {len(point.vector)} does not match "
                    f"collection dimension {collection.dimension}",
                    operation="upsert",
                    details={"namespace": namespace, "id": point.id},
                )
        for point in points:
            collection.upsert(point)

    async def similarity_search(
        self,
        namespace: str,
        vector: Sequence[float],
        top_n: int,
        threshold: float,
    ) -> list[VectorSearchResult]:
        collection = self._collections.get(namespace)
        if collection is None or not collection.ids:
            return []

        query = np.asarray(vector, dtype=np.float32)
        norms = np.linalg.norm(collection.matrix, axis=1) * np.linalg.norm(query)
        norms[norms == 0] = 1.0
        scores = collection.matrix @ query / norms

        order = np.argsort(-scores)[:top_n]
        return [
            VectorSearchResult(
                id=collection.ids[i],
                payload=dict(collection.payloads[i]),
                score=float(scores[i]),
            )
            for i in order
            if scores[i] >= threshold
        ]

    async def delete_by_ids(self, namespace: str, ids: Sequence[str]) -> None:
        collection = self._collections.get(namespace)
        if collection is not None and ids:
            collection.remove(set(ids))

    def count(self, namespace: str) -> int:
        collection = self._collections.get(namespace)
        return len(collection.ids) if collection else 0
