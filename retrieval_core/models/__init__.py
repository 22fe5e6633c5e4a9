"""
Domain models for ingestion and retrieval.

Exports: Document, DocumentMetadata, DocumentStatus, Chunk, EmbeddingVector,
Credential, SearchCandidate, FilterPredicates, SearchOptions, IngestionReport
"""

from .chunk import Chunk
from .credential import Credential, CredentialSnapshot
from .document import Document, DocumentMetadata, DocumentStatus
from .embedding import EmbeddingVector
from .ingestion import BatchProgress, DocumentOutcome, FailedDocument, IngestionReport
from .search import (
    FilterPredicates,
    PathHits,
    RetrievalPath,
    SearchCandidate,
    SearchOptions,
    SubScores,
)

__all__ = [
    "Chunk",
    "Credential",
    "CredentialSnapshot",
    "Document",
    "DocumentMetadata",
    "DocumentStatus",
    "EmbeddingVector",
    "BatchProgress",
    "DocumentOutcome",
    "FailedDocument",
    "IngestionReport",
    "FilterPredicates",
    "PathHits",
    "RetrievalPath",
    "SearchCandidate",
    "SearchOptions",
    "SubScores",
]
