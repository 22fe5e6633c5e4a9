"""
Configuration settings for the ingestion pipeline.

Provides environment-based configuration for batching, document-level
concurrency, retries and chunking.

Dependencies: pydantic, pydantic_settings
System role: Centralized ingestion configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Settings for the parallel ingestion orchestrator."""

    model_config = SettingsConfigDict(env_prefix="INGESTION_")

    # Batching
    batch_size: int = Field(
        default=100,
        ge=1,
        description="Documents per outer batch",
    )
    document_concurrency: int = Field(
        default=8,
        ge=1,
        description="Documents processed simultaneously (about 2x CPU cores)",
    )
    batch_pause: float = Field(
        default=0.1,
        ge=0,
        description="Pause in seconds between outer batches",
    )
    db_batch_size: int = Field(
        default=50,
        ge=1,
        description="Rows per metadata-store bulk insert statement",
    )

    # Retries
    retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per document when no vectors were produced",
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base delay in seconds between document attempts",
    )

    # Chunking
    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum chunk body size in characters",
    )
    chunk_overlap: int = Field(
        default=20,
        ge=0,
        description="Overlap between consecutive chunk bodies",
    )

    @model_validator(mode="after")
    def check_overlap(self) -> "IngestionSettings":
        """Reject an overlap that is not strictly smaller than the chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self
