"""
Task modules for the ingestion pipeline.

Exports: ChunkingTask, EmbeddingTask, VectorStoreTask, MetadataExtractionTask,
DocumentSavingTask
"""

from .chunking_task import ChunkingTask
from .embedding_task import EmbeddingStats, EmbeddingTask
from .metadata_task import MetadataExtractionTask, extract_legal_metadata
from .saving_task import DocumentSavingTask, SaveResult
from .vector_store_task import VectorStoreTask

__all__ = [
    "ChunkingTask",
    "EmbeddingTask",
    "EmbeddingStats",
    "MetadataExtractionTask",
    "extract_legal_metadata",
    "DocumentSavingTask",
    "SaveResult",
    "VectorStoreTask",
]
