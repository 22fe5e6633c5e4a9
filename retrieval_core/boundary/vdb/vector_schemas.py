"""
Vector database schemas.

Pydantic models for vector search results returned by every VectorStore
implementation.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from typing import Any

from pydantic import BaseModel, Field


class VectorSearchResult(BaseModel):
    """Single result from a similarity search."""

    id: str = Field(description="Vector point ID")
    payload: dict[str, Any] = Field(default_factory=dict, description="Stored payload")
    score: float = Field(description="Cosine similarity score")

    @property
    def document_id(self) -> str:
        return str(self.payload.get("document_id", ""))

    @property
    def text(self) -> str:
        return str(self.payload.get("text", ""))
