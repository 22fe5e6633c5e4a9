"""
Qdrant vector store for production retrieval.

Wraps AsyncQdrantClient behind the VectorStore contract. Each namespace is
one collection using cosine distance; the dimension is fixed at creation.

Dependencies: qdrant_client
System role: Production vector store (Qdrant)
"""

import logging
from typing import Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from retrieval_core.boundary.vdb.vector_schemas import VectorSearchResult
from retrieval_core.configs.vector_store import VectorStoreSettings
from retrieval_core.core.exceptions import PersistenceError, TransientProviderError
from retrieval_core.models.embedding import EmbeddingVector

logger = logging.getLogger(__name__)


class QdrantVectorStore:
    """
    Qdrant-backed vector store.

    Write failures surface as PersistenceError so the persistence adapter can
    apply its halve-and-retry policy; read failures surface as
    TransientProviderError so a query path degrades instead of aborting.
    """

    def __init__(self, client: AsyncQdrantClient) -> None:
        """
        Initialize store.

        Args:
            client: Connected async Qdrant client
        """
        self._client = client
        self._known_collections: set[str] = set()

    @classmethod
    def from_settings(cls, settings: VectorStoreSettings) -> "QdrantVectorStore":
        """Build a store with a client configured from settings."""
        client = AsyncQdrantClient(
            url=settings.url,
            api_key=settings.api_key,
            timeout=settings.timeout,
        )
        logger.info(f"{__name__}:from_settings - Qdrant client created for {settings.url}")
        return cls(client)

    async def ensure_collection(self, namespace: str, dimension: int) -> None:
        """
        Create the namespace collection if absent.

        Raises:
            PersistenceError: If the collection cannot be checked or created
        """
        if namespace in self._known_collections:
            return
        try:
            if not await self._client.collection_exists(collection_name=namespace):
                await self._client.create_collection(
                    collection_name=namespace,
                    vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
                )
                logger.info(
                    f"{__name__}:ensure_collection - Created collection {namespace}",
                    extra={"namespace": namespace, "dimension": dimension},
                )
        except (UnexpectedResponse, ResponseHandlingException) as e:
            raise PersistenceError(
                f"Failed to ensure collection {namespace}: {e}",
                operation="ensure_collection",
            ) from e
        self._known_collections.add(namespace)

    async def upsert(self, namespace: str, points: Sequence[EmbeddingVector]) -> None:
        """
        Upsert points and wait for the write to be applied.

        Raises:
            PersistenceError: If Qdrant rejects or fails the write
        """
        if not points:
            return
        structs = [
            PointStruct(id=point.id, vector=point.vector, payload=point.payload)
            for point in points
        ]
        try:
            await self._client.upsert(collection_name=namespace, points=structs, wait=True)
        except (UnexpectedResponse, ResponseHandlingException) as e:
            raise PersistenceError(
                f"Qdrant upsert failed: {e}",
                operation="upsert",
                details={"namespace": namespace, "points": len(points)},
            ) from e

    async def similarity_search(
        self,
        namespace: str,
        vector: Sequence[float],
        top_n: int,
        threshold: float,
    ) -> list[VectorSearchResult]:
        """
        Query nearest neighbours in a namespace.

        Returns:
            list[VectorSearchResult]: Empty when the collection does not exist

        Raises:
            TransientProviderError: If the query fails
        """
        try:
            if not await self._client.collection_exists(collection_name=namespace):
                return []
            response = await self._client.query_points(
                collection_name=namespace,
                query=list(vector),
                limit=top_n,
                score_threshold=threshold,
                with_payload=True,
            )
        except (UnexpectedResponse, ResponseHandlingException) as e:
            raise TransientProviderError(f"Qdrant query failed: {e}") from e

        return [
            VectorSearchResult(id=str(point.id), payload=point.payload or {}, score=point.score)
            for point in response.points
        ]

    async def delete_by_ids(self, namespace: str, ids: Sequence[str]) -> None:
        """
        Delete points by ID.

        Raises:
            PersistenceError: If the delete fails
        """
        if not ids:
            return
        try:
            await self._client.delete(
                collection_name=namespace,
                points_selector=PointIdsList(points=list(ids)),
                wait=True,
            )
        except (UnexpectedResponse, ResponseHandlingException) as e:
            raise PersistenceError(
                f"Qdrant delete failed: {e}",
                operation="delete",
                details={"namespace": namespace, "ids": len(ids)},
            ) from e

    async def close(self) -> None:
        await self._client.close()
