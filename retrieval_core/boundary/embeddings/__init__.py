"""
Embedding provider boundary.

Exports: EmbeddingService, TaskHint, LangChainEmbeddingService
"""

from .base import EmbeddingService, TaskHint
from .langchain_embeddings import (
    LangChainEmbeddingService,
    classify_provider_error,
    google_embeddings_factory,
)

__all__ = [
    "EmbeddingService",
    "TaskHint",
    "LangChainEmbeddingService",
    "classify_provider_error",
    "google_embeddings_factory",
]
