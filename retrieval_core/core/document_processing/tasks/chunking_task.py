"""
Text chunking task using RecursiveCharacterTextSplitter.

Splits document text into bounded chunks, preferring paragraph, then line,
then whitespace, then character boundaries, and prefixes each chunk with
the document's rendered metadata header.

Dependencies: langchain_text_splitters
System role: First stage of document ingestion pipeline
"""

from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from retrieval_core.core.exceptions import ConfigurationError, PermanentInputError
from retrieval_core.models.chunk import Chunk
from retrieval_core.models.document import Document, DocumentMetadata

SEPARATORS = ["\n\n", "\n", " ", ""]


class ChunkingTask:
    """Split documents into chunks using RecursiveCharacterTextSplitter."""

    def __init__(
        self,
        max_length: int = 1000,
        overlap_length: int = 20,
        provider_max_length: int | None = None,
    ) -> None:
        """
        Initialize chunking task with splitter configuration.

        Args:
            max_length: Maximum chunk body size in characters
            overlap_length: Overlap between consecutive chunk bodies
            provider_max_length: Embedding provider input limit; clamps max_length

        Raises:
            ConfigurationError: When overlap_length >= effective max_length
        """
        if provider_max_length is not None:
            max_length = min(max_length, provider_max_length)
        if max_length < 1:
            raise ConfigurationError("max_length must be positive", setting="chunk_size")
        if overlap_length >= max_length:
            raise ConfigurationError(
                f"overlap_length ({overlap_length}) must be less than "
                f"max_length ({max_length})",
                setting="chunk_overlap",
            )

        self.max_length = max_length
        self.overlap_length = overlap_length
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=max_length,
            chunk_overlap=overlap_length,
            separators=SEPARATORS,
            length_function=len,
        )

    def split(
        self,
        text: str,
        header_metadata: DocumentMetadata | None = None,
        document_id: str = "",
        partition_key: str = "",
    ) -> list[Chunk]:
        """
        Split text into chunks.

        Args:
            text: Raw document text
            header_metadata: Metadata rendered as the header of every chunk
            document_id: Parent document ID
            partition_key: Parent document partition

        Returns:
            list[Chunk]: Chunks in document order

        Raises:
            PermanentInputError: When text is empty or whitespace
        """
        if not text or not text.strip():
            raise PermanentInputError("Document text is empty", document_id=document_id or None)

        header = header_metadata.render_header() if header_metadata else ""
        inherited: dict[str, Any] = header_metadata.payload_fields() if header_metadata else {}

        bodies = [body for body in self._splitter.split_text(text) if body.strip()]
        if not bodies:
            raise PermanentInputError(
                "Document produced no chunks", document_id=document_id or None
            )

        return [
            Chunk(
                id=Chunk.generate_id(document_id, ordinal, body),
                document_id=document_id,
                partition_key=partition_key,
                ordinal=ordinal,
                header=header,
                body=body,
                metadata=dict(inherited),
            )
            for ordinal, body in enumerate(bodies)
        ]

    def chunk_document(self, document: Document) -> list[Chunk]:
        """Split a Document, inheriting its metadata and partition."""
        return self.split(
            document.text,
            header_metadata=document.metadata,
            document_id=document.id,
            partition_key=document.partition_key,
        )
