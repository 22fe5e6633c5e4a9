"""
Document record ORM model.

One row per ingested document and partition in the structured metadata
store; the same document ID may exist in several partitions. The
enumerated filter fields are real columns so metadata search can use
equality/range predicates; everything else lives in the JSON column.

Dependencies: sqlalchemy, retrieval_core.boundary.db.base
System role: Metadata store for filter search and result enrichment
"""

from typing import Any

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from retrieval_core.boundary.db.base import Base, TimestampMixin


class DocumentRecordModel(Base, TimestampMixin):
    """
    Document metadata row.

    Attributes:
        id: Document ID supplied by the caller
        partition_key: Tenant/workspace scope
        title: Document title
        source: Origin URI or filename
        court: Court name (e.g. "Supreme Court of India")
        year: Judgment/publication year
        case_type: Case type (e.g. "Criminal Appeal")
        jurisdiction: "Criminal" or "Civil"
        bench_type: Bench composition
        citation: Neutral or reporter citation
        summary: Leading text of the document, used for full-text matching
        attributes: Remaining metadata fields
        status: Ingestion status
        chunk_count: Chunks produced at ingestion
        vector_count: Vectors persisted at ingestion
    """

    __tablename__ = "document_records"

    partition_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    title: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    source: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    court: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    case_type: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    jurisdiction: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bench_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    citation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    attributes: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        default=dict,
        nullable=False,
    )

    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    chunk_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    vector_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    FILTER_FIELDS = ("court", "year", "case_type", "jurisdiction", "bench_type")

    def to_metadata(self) -> dict[str, Any]:
        """Column values plus JSON attributes, without empty fields."""
        data = dict(self.attributes or {})
        for field in ("title", "source", "citation", *self.FILTER_FIELDS):
            value = getattr(self, field)
            if value is not None:
                data[field] = value
        return data
