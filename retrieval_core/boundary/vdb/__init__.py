"""
Vector database boundary.

Exports: VectorStore, VectorSearchResult, QdrantVectorStore, InMemoryVectorStore,
create_vector_store
"""

import logging

from retrieval_core.configs.vector_store import VectorStoreSettings

from .base import VectorStore
from .memory_store import InMemoryVectorStore
from .qdrant_store import QdrantVectorStore
from .vector_schemas import VectorSearchResult

logger = logging.getLogger(__name__)


def create_vector_store(settings: VectorStoreSettings) -> VectorStore:
    """
    Factory selecting the vector store backend from configuration.

    Raises:
        ValueError: If the provider is not 'qdrant' or 'memory'
    """
    provider = settings.provider.lower()
    if provider == "memory":
        logger.info(f"{__name__}:create_vector_store - Using in-memory store (dev mode)")
        return InMemoryVectorStore()
    if provider == "qdrant":
        logger.info(f"{__name__}:create_vector_store - Using Qdrant store")
        return QdrantVectorStore.from_settings(settings)
    raise ValueError(
        f"Invalid VECTOR_STORE_PROVIDER: {provider}. Must be 'memory' or 'qdrant'."
    )


__all__ = [
    "VectorStore",
    "VectorSearchResult",
    "InMemoryVectorStore",
    "QdrantVectorStore",
    "create_vector_store",
]
