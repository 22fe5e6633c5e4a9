"""
Vector store contract.

Namespaces map to collections. Implementations create a collection with a
fixed dimensionality on demand and never re-chunk payload text.

Dependencies: typing
System role: External interface for the vector database
"""

from typing import Protocol, Sequence, runtime_checkable

from retrieval_core.boundary.vdb.vector_schemas import VectorSearchResult
from retrieval_core.models.embedding import EmbeddingVector


@runtime_checkable
class VectorStore(Protocol):
    """Namespace-scoped vector database."""

    async def ensure_collection(self, namespace: str, dimension: int) -> None:
        """Create the collection for ``namespace`` if it does not exist."""
        ...

    async def upsert(self, namespace: str, points: Sequence[EmbeddingVector]) -> None:
        """Insert or replace points in one request."""
        ...

    async def similarity_search(
        self,
        namespace: str,
        vector: Sequence[float],
        top_n: int,
        threshold: float,
    ) -> list[VectorSearchResult]:
        """Nearest neighbours with score at or above ``threshold``, best first."""
        ...

    async def delete_by_ids(self, namespace: str, ids: Sequence[str]) -> None:
        """Remove points by ID; unknown IDs are ignored."""
        ...
