"""
Ingestion report models.

Structured success/failure report returned by the ingestion orchestrator.

Dependencies: pydantic
System role: Return type for IngestionOrchestrator.ingest()
"""

from pydantic import BaseModel, Field


class FailedDocument(BaseModel):
    """A document that could not be ingested."""

    document_id: str
    error: str
    attempts: int = Field(default=1, ge=0)


class BatchProgress(BaseModel):
    """Progress snapshot emitted after each outer batch."""

    batch_index: int
    batch_count: int
    batch_size: int
    processed: int
    failed: int
    elapsed_seconds: float
    rate_per_second: float

    @property
    def percent(self) -> float:
        return (self.batch_index + 1) / self.batch_count * 100 if self.batch_count else 100.0


class DocumentOutcome(BaseModel):
    """Result of processing one document through chunk, embed and persist."""

    document_id: str
    partition_key: str
    chunk_count: int = 0
    vector_count: int = 0
    attempts: int = 1

    @property
    def partial(self) -> bool:
        return self.vector_count < self.chunk_count


class IngestionReport(BaseModel):
    """Outcome of an ingest() call."""

    succeeded: list[str] = Field(default_factory=list)
    failed: list[FailedDocument] = Field(default_factory=list)
    errors: set[str] = Field(default_factory=set)
    batches: list[BatchProgress] = Field(default_factory=list)
    partial: list[str] = Field(
        default_factory=list,
        description="Succeeded documents where some chunks did not embed",
    )
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)
