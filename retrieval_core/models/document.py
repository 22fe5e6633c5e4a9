"""
Document domain model for the ingestion pipeline.

A Document is the unit of ingestion: stable id, raw text, a closed and
versioned metadata schema, and the partition key that scopes it to one
tenant/workspace.

Dependencies: pydantic
System role: Ingestion input record
"""

import enum
from typing import Any

from pydantic import BaseModel, Field

METADATA_SCHEMA_VERSION = 1


class DocumentStatus(str, enum.Enum):
    """
    Document ingestion lifecycle states.

    PENDING: Submitted, not yet processed
    CHUNKED: Split into chunks
    EMBEDDED: At least one chunk embedded
    PERSISTED: Vectors and linkage written
    FAILED: Permanently failed; see the ingestion report
    """

    PENDING = "pending"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    PERSISTED = "persisted"
    FAILED = "failed"


class DocumentMetadata(BaseModel):
    """Structured metadata attached to a document and inherited by its chunks."""

    schema_version: int = Field(default=METADATA_SCHEMA_VERSION)

    title: str | None = Field(default=None, description="Document title")
    source: str | None = Field(default=None, description="Origin URI or filename")
    categories: list[str] = Field(default_factory=list, description="Category tags")
    date: str | None = Field(default=None, description="Free-form date (judgment/publication)")
    author: str | None = Field(default=None, description="Free-form author")

    # Structured fields used by metadata filtering
    court: str | None = None
    year: int | None = None
    case_type: str | None = None
    jurisdiction: str | None = None
    bench_type: str | None = None
    citation: str | None = None
    judges: list[str] = Field(default_factory=list)
    sections_cited: list[str] = Field(default_factory=list)
    articles_cited: list[str] = Field(default_factory=list)
    acts_cited: list[str] = Field(default_factory=list)

    extra: dict[str, Any] = Field(
        default_factory=dict,
        description="Fields outside the closed schema",
    )

    def render_header(self) -> str:
        """
        Render the metadata block prefixed to every chunk of the document.

        Returns:
            str: Header block, or an empty string when no field is set
        """
        lines = []
        for label, value in (
            ("title", self.title),
            ("source", self.source),
            ("author", self.author),
            ("date", self.date),
            ("court", self.court),
            ("citation", self.citation),
        ):
            if value:
                lines.append(f"{label}: {value}")
        if self.categories:
            lines.append(f"categories: {', '.join(self.categories)}")
        if not lines:
            return ""
        body = "\n".join(lines)
        return f"<document_metadata>\n{body}\n</document_metadata>\n\n"

    def payload_fields(self) -> dict[str, Any]:
        """Flatten non-empty fields for vector payloads and keyword documents."""
        data = self.model_dump(exclude={"extra", "schema_version"}, exclude_none=True)
        data = {key: value for key, value in data.items() if value not in ([], "")}
        data.update({key: value for key, value in self.extra.items() if key not in data})
        return data


class Document(BaseModel):
    """Unit of ingestion."""

    id: str = Field(description="Stable document identifier")
    text: str = Field(description="Raw document text")
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    partition_key: str = Field(description="Tenant/workspace scope")
    status: DocumentStatus = Field(default=DocumentStatus.PENDING)
