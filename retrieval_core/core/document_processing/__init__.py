"""
Document ingestion pipeline.

Exports: IngestionOrchestrator and the pipeline tasks
"""

from .orchestrator import IngestionOrchestrator
from .tasks import (
    ChunkingTask,
    DocumentSavingTask,
    EmbeddingTask,
    MetadataExtractionTask,
    VectorStoreTask,
)

__all__ = [
    "IngestionOrchestrator",
    "ChunkingTask",
    "DocumentSavingTask",
    "EmbeddingTask",
    "MetadataExtractionTask",
    "VectorStoreTask",
]
