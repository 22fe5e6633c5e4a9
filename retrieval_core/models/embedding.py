"""
Embedding vector model.

An EmbeddingVector exists in 1:1 correspondence with a successfully
embedded chunk. Its payload text is the chunk text, never re-chunked.

Dependencies: pydantic, uuid
System role: Unit of vector persistence
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from retrieval_core.models.chunk import Chunk

# Fixed namespace so vector ids are stable across re-ingestion (idempotent upserts)
VECTOR_ID_NAMESPACE = uuid.UUID("6f1c2a58-4f1e-4d5b-9c7e-2b8f0e5d7a31")


class EmbeddingVector(BaseModel):
    """Vector plus payload keyed by a generated identifier."""

    id: str = Field(description="Vector point ID (UUID string)")
    vector: list[float] = Field(description="Embedding values")
    payload: dict[str, Any] = Field(description="Chunk text and inherited metadata")

    @property
    def document_id(self) -> str:
        return self.payload["document_id"]

    @property
    def text(self) -> str:
        return self.payload["text"]

    @property
    def ordinal(self) -> int:
        return self.payload.get("ordinal", 0)

    @staticmethod
    def generate_id(document_id: str, ordinal: int) -> str:
        """Derive the point ID from the parent document and chunk position."""
        return str(uuid.uuid5(VECTOR_ID_NAMESPACE, f"{document_id}:{ordinal}"))

    @classmethod
    def from_chunk(cls, chunk: Chunk, vector: list[float]) -> "EmbeddingVector":
        """
        Build the vector record for an embedded chunk.

        Args:
            chunk: Chunk that was submitted for embedding
            vector: Values returned by the provider

        Returns:
            EmbeddingVector: Record whose payload text equals ``chunk.text``
        """
        payload = dict(chunk.metadata)
        payload.update(
            {
                "text": chunk.text,
                "document_id": chunk.document_id,
                "chunk_id": chunk.id,
                "ordinal": chunk.ordinal,
                "partition_key": chunk.partition_key,
            }
        )
        return cls(
            id=cls.generate_id(chunk.document_id, chunk.ordinal),
            vector=list(vector),
            payload=payload,
        )
