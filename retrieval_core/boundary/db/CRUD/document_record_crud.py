"""
Document record CRUD operations.

Bulk and single-row writes for the structured metadata store, with upsert
semantics so re-ingesting a document replaces its row. Rows are keyed by
``(partition_key, id)``; every write and lookup is scoped to a partition.

Dependencies: sqlalchemy, retrieval_core.boundary.db.models
System role: Metadata store persistence operations
"""

from typing import Any, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_core.boundary.db.models.document_record_model import DocumentRecordModel


class DocumentRecordCRUD(BaseCRUD[DocumentRecordModel]):
    """CRUD operations for DocumentRecordModel."""

    def __init__(self) -> None:
        """Initialize DocumentRecordCRUD with DocumentRecordModel."""
        super().__init__(DocumentRecordModel)

    async def bulk_upsert(
        self,
        session: AsyncSession,
        rows: Sequence[dict[str, Any]],
        chunk_size: int = 50,
    ) -> int:
        """
        Replace-or-insert many rows.

        Existing rows with the same partition and ID are deleted first, then
        the new rows are inserted in statements of ``chunk_size`` rows.

        Args:
            session: Async database session
            rows: Column values keyed by attribute name
            chunk_size: Rows per INSERT statement

        Returns:
            int: Number of rows written
        """
        if not rows:
            return 0
        by_partition: dict[str, list[str]] = {}
        for row in rows:
            by_partition.setdefault(row["partition_key"], []).append(row["id"])
        for partition_key, ids in by_partition.items():
            await session.execute(
                delete(DocumentRecordModel).where(
                    DocumentRecordModel.partition_key == partition_key,
                    DocumentRecordModel.id.in_(ids),
                )
            )
        for start in range(0, len(rows), chunk_size):
            await session.execute(insert(DocumentRecordModel), list(rows[start : start + chunk_size]))
        return len(rows)

    async def upsert_one(self, session: AsyncSession, row: dict[str, Any]) -> DocumentRecordModel:
        """Replace-or-insert a single row."""
        await self.delete_by_id(session, (row["partition_key"], row["id"]))
        return await self.create(session, **row)

    async def get_many(
        self,
        session: AsyncSession,
        ids: Sequence[str],
        partition_key: str,
    ) -> Sequence[DocumentRecordModel]:
        """Fetch the rows of one partition by document ID."""
        if not ids:
            return []
        stmt = select(DocumentRecordModel).where(
            DocumentRecordModel.partition_key == partition_key,
            DocumentRecordModel.id.in_(list(ids)),
        )
        result = await session.execute(stmt)
        return result.scalars().all()
