"""
Document-to-vector linkage CRUD operations.

Dependencies: sqlalchemy, retrieval_core.boundary.db.models
System role: Linkage index persistence operations
"""

from typing import Any, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_core.boundary.db.models.document_vector_model import DocumentVectorModel


class DocumentVectorCRUD(BaseCRUD[DocumentVectorModel]):
    """
    CRUD operations for DocumentVectorModel.

    Extends BaseCRUD with namespace-scoped lookups by document.
    """

    def __init__(self) -> None:
        """Initialize DocumentVectorCRUD with DocumentVectorModel."""
        super().__init__(DocumentVectorModel)

    async def bulk_create(
        self,
        session: AsyncSession,
        namespace: str,
        rows: Sequence[dict[str, Any]],
    ) -> int:
        """
        Write linkage rows in one statement, replacing rows for the same points.

        Args:
            session: Async database session
            namespace: Vector collection
            rows: Dicts with document_id, vector_id, ordinal and text

        Returns:
            int: Number of rows written
        """
        if not rows:
            return 0
        vector_ids = [row["vector_id"] for row in rows]
        await session.execute(
            delete(DocumentVectorModel).where(
                DocumentVectorModel.namespace == namespace,
                DocumentVectorModel.vector_id.in_(vector_ids),
            )
        )
        await session.execute(
            insert(DocumentVectorModel),
            [{**row, "namespace": namespace} for row in rows],
        )
        return len(rows)

    async def get_vector_ids(
        self,
        session: AsyncSession,
        namespace: str,
        document_id: str,
    ) -> list[str]:
        """Vector IDs linked to a document, in chunk order."""
        stmt = (
            select(DocumentVectorModel.vector_id)
            .where(
                DocumentVectorModel.namespace == namespace,
                DocumentVectorModel.document_id == document_id,
            )
            .order_by(DocumentVectorModel.ordinal)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_namespace(
        self,
        session: AsyncSession,
        namespace: str,
        limit: int | None = None,
    ) -> Sequence[DocumentVectorModel]:
        """All linkage rows of a namespace, ordered by document then chunk."""
        stmt = (
            select(DocumentVectorModel)
            .where(DocumentVectorModel.namespace == namespace)
            .order_by(DocumentVectorModel.document_id, DocumentVectorModel.ordinal)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_by_document(
        self,
        session: AsyncSession,
        namespace: str,
        document_id: str,
    ) -> int:
        """Remove every linkage row of a document. Returns rows deleted."""
        stmt = delete(DocumentVectorModel).where(
            DocumentVectorModel.namespace == namespace,
            DocumentVectorModel.document_id == document_id,
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def delete_by_vector_ids(
        self,
        session: AsyncSession,
        namespace: str,
        vector_ids: Sequence[str],
    ) -> int:
        """Remove the linkage rows of specific points. Returns rows deleted."""
        if not vector_ids:
            return 0
        stmt = delete(DocumentVectorModel).where(
            DocumentVectorModel.namespace == namespace,
            DocumentVectorModel.vector_id.in_(list(vector_ids)),
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
