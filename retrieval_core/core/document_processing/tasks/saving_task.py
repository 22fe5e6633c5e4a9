"""
Metadata store persistence task.

Writes the records of successfully ingested documents to the structured
metadata store: one bulk write per batch, falling back to one write per
document when the bulk write fails.

Dependencies: sqlalchemy, retrieval_core.boundary.db
System role: Post-batch stage of document ingestion pipeline
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from retrieval_core.boundary.db.CRUD.document_record_crud import DocumentRecordCRUD
from retrieval_core.core.exceptions import PersistenceError
from retrieval_core.models.document import Document
from retrieval_core.models.ingestion import DocumentOutcome
from retrieval_core.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 1000


@dataclass
class SaveResult:
    """Outcome of one save_batch() call."""

    saved: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    used_fallback: bool = False


def to_record(document: Document, outcome: DocumentOutcome | None = None) -> dict[str, Any]:
    """Column values for a document's metadata-store row."""
    metadata = document.metadata
    columns = {"title", "source", "court", "year", "case_type", "jurisdiction", "bench_type", "citation"}
    attributes = {
        key: value for key, value in metadata.payload_fields().items() if key not in columns
    }
    attributes["schema_version"] = metadata.schema_version
    return {
        "id": document.id,
        "partition_key": document.partition_key,
        "title": metadata.title,
        "source": metadata.source,
        "court": metadata.court,
        "year": metadata.year,
        "case_type": metadata.case_type,
        "jurisdiction": metadata.jurisdiction,
        "bench_type": metadata.bench_type,
        "citation": metadata.citation,
        "summary": document.text[:SUMMARY_LENGTH],
        "attributes": attributes,
        "status": document.status.value,
        "chunk_count": outcome.chunk_count if outcome else 0,
        "vector_count": outcome.vector_count if outcome else 0,
    }


class DocumentSavingTask:
    """Persist document records to the metadata store."""

    def __init__(self, session_factory: async_sessionmaker, db_batch_size: int = 50) -> None:
        """
        Initialize saving task.

        Args:
            session_factory: Async session factory for the metadata database
            db_batch_size: Rows per INSERT statement in the bulk write
        """
        self._session_factory = session_factory
        self._records = DocumentRecordCRUD()
        self.db_batch_size = db_batch_size

    async def save_batch(
        self,
        items: Sequence[tuple[Document, DocumentOutcome | None]],
    ) -> SaveResult:
        """
        Write one batch of records.

        Args:
            items: Documents with their ingestion outcomes

        Returns:
            SaveResult: Saved IDs and per-document errors from the fallback
        """
        result = SaveResult()
        if not items:
            return result

        rows = [to_record(document, outcome) for document, outcome in items]
        try:
            async with self._session_factory() as session:
                await self._records.bulk_upsert(session, rows, chunk_size=self.db_batch_size)
                await session.commit()
            result.saved = [row["id"] for row in rows]
            logger.debug(f"{__name__}:save_batch - Bulk saved {len(rows)} records")
            return result
        except SQLAlchemyError as e:
            logger.warning(
                f"{__name__}:save_batch - Bulk write of {len(rows)} records failed, "
                f"falling back to individual writes: {e}"
            )

        result.used_fallback = True
        for row in rows:
            try:
                async with self._session_factory() as session:
                    await self._records.upsert_one(session, row)
                    await session.commit()
                result.saved.append(row["id"])
            except SQLAlchemyError as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:save_batch - Record {row['id']} could not be saved",
                    e,
                    document_id=row["id"],
                    partition_key=row["partition_key"],
                )
                result.failed[row["id"]] = str(e)
        return result

    async def delete(self, partition_key: str, document_id: str) -> bool:
        """
        Remove a document's metadata record from one partition.

        Raises:
            PersistenceError: When the delete fails
        """
        try:
            async with self._session_factory() as session:
                deleted = await self._records.delete_by_id(session, (partition_key, document_id))
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Metadata record delete failed: {e}", operation="delete"
            ) from e
        return deleted
