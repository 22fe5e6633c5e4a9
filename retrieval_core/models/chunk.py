"""
Chunk domain model for the ingestion pipeline.

Represents a contiguous slice of a document's text with the rendered
metadata header prefixed. ``text`` is exactly what gets embedded.

Dependencies: pydantic
System role: Data structure for document chunks in ingestion pipeline
"""

import hashlib
from typing import Any

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """Document chunk owned by exactly one document."""

    id: str = Field(description="Deterministic chunk identifier (content hash)")
    document_id: str = Field(description="Parent document ID")
    partition_key: str = Field(description="Parent document partition")
    ordinal: int = Field(ge=0, description="Position within the document")
    header: str = Field(default="", description="Rendered metadata header")
    body: str = Field(description="Slice of the document text")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Inherited metadata")

    @property
    def text(self) -> str:
        """Header plus body, the exact text submitted for embedding."""
        return f"{self.header}{self.body}"

    @staticmethod
    def generate_id(document_id: str, ordinal: int, body: str) -> str:
        """
        Generate deterministic chunk ID from parent, position and content.

        Args:
            document_id: Parent document ID
            ordinal: Position within the document
            body: Chunk body text

        Returns:
            str: SHA-256 hash prefix (16 chars)
        """
        hash_input = f"{document_id}:{ordinal}:{body}"
        return hashlib.sha256(hash_input.encode()).hexdigest()[:16]
