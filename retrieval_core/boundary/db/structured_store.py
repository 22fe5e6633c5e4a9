"""
SQL structured store.

Answers field-predicate queries over the document metadata table and
serves metadata lookups for result enrichment. Each matching row is scored
by the fraction of active predicates it satisfies, so a row matching every
predicate scores 1.0.

Dependencies: sqlalchemy, retrieval_core.boundary.db
System role: Structured store behind metadata filter search, facets and stats
"""

import logging
from typing import Any, Sequence

from pydantic import BaseModel, Field
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from retrieval_core.boundary.db.CRUD.document_record_crud import DocumentRecordCRUD
from retrieval_core.boundary.db.models.document_record_model import DocumentRecordModel
from retrieval_core.models.search import FilterPredicates

logger = logging.getLogger(__name__)


class StructuredRow(BaseModel):
    """One metadata-store row matched by a predicate query."""

    document_id: str
    partition_key: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    text: str = Field(default="", description="Leading document text")
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class FacetValue(BaseModel):
    """One distinct value of a filter field and how many documents carry it."""

    value: str | int
    count: int


class MetadataStats(BaseModel):
    """Metadata-store summary for one partition."""

    partition_key: str
    documents: int = 0
    chunks: int = 0
    vectors: int = 0
    year_min: int | None = None
    year_max: int | None = None
    courts: dict[str, int] = Field(default_factory=dict)
    case_types: dict[str, int] = Field(default_factory=dict)


def _conditions(predicates: FilterPredicates) -> dict[str, Any]:
    """One SQL condition per active predicate, keyed by predicate name."""
    model = DocumentRecordModel
    conditions: dict[str, Any] = {}
    if predicates.year is not None:
        conditions["year"] = model.year == predicates.year
    if predicates.year_from is not None or predicates.year_to is not None:
        low = predicates.year_from if predicates.year_from is not None else 0
        high = predicates.year_to if predicates.year_to is not None else 9999
        conditions["year_range"] = model.year.between(low, high)
    if predicates.court:
        conditions["court"] = model.court.ilike(f"%{predicates.court}%")
    if predicates.case_type:
        conditions["case_type"] = model.case_type.ilike(f"%{predicates.case_type}%")
    if predicates.jurisdiction:
        conditions["jurisdiction"] = model.jurisdiction.ilike(predicates.jurisdiction)
    if predicates.bench_type:
        conditions["bench_type"] = model.bench_type.ilike(f"%{predicates.bench_type}%")
    if predicates.fulltext:
        pattern = f"%{predicates.fulltext}%"
        conditions["fulltext"] = or_(
            model.title.ilike(pattern),
            model.summary.ilike(pattern),
            model.citation.ilike(pattern),
        )
    return conditions


def _satisfied(row: DocumentRecordModel, predicates: FilterPredicates) -> int:
    hits = 0
    if predicates.year is not None and row.year == predicates.year:
        hits += 1
    if predicates.year_from is not None or predicates.year_to is not None:
        low = predicates.year_from if predicates.year_from is not None else 0
        high = predicates.year_to if predicates.year_to is not None else 9999
        if row.year is not None and low <= row.year <= high:
            hits += 1
    for field in ("court", "case_type", "bench_type"):
        wanted = getattr(predicates, field)
        value = getattr(row, field)
        if wanted and value and wanted.lower() in value.lower():
            hits += 1
    if predicates.jurisdiction and row.jurisdiction:
        if predicates.jurisdiction.lower() == row.jurisdiction.lower():
            hits += 1
    if predicates.fulltext:
        needle = predicates.fulltext.lower()
        haystacks = (row.title, row.summary, row.citation)
        if any(h and needle in h.lower() for h in haystacks):
            hits += 1
    return hits


class SQLStructuredStore:
    """Structured store backed by the document_records table."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        """
        Initialize store.

        Args:
            session_factory: Async session factory for the metadata database
        """
        self._session_factory = session_factory
        self._records = DocumentRecordCRUD()

    async def query(
        self,
        predicates: FilterPredicates,
        partition_key: str,
        limit: int,
    ) -> list[StructuredRow]:
        """
        Rows of ``partition_key`` matching at least one predicate.

        Args:
            predicates: Field predicates; empty predicates match nothing
            partition_key: Tenant/workspace scope
            limit: Maximum rows returned

        Returns:
            list[StructuredRow]: Best-scoring rows first
        """
        conditions = _conditions(predicates)
        if not conditions:
            return []

        stmt = (
            select(DocumentRecordModel)
            .where(
                and_(
                    DocumentRecordModel.partition_key == partition_key,
                    or_(*conditions.values()),
                )
            )
            .limit(limit * 4)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()

        total = len(conditions)
        rows = [
            StructuredRow(
                document_id=record.id,
                partition_key=record.partition_key,
                metadata=record.to_metadata(),
                text=record.summary or "",
                score=min(1.0, _satisfied(record, predicates) / total),
            )
            for record in records
        ]
        rows.sort(key=lambda row: (-row.score, row.document_id))

        logger.debug(
            f"{__name__}:query - {len(rows)} rows matched",
            extra={"partition_key": partition_key, "predicates": list(conditions)},
        )
        return rows[:limit]

    async def get_metadata(
        self,
        document_ids: Sequence[str],
        partition_key: str,
    ) -> dict[str, dict[str, Any]]:
        """Metadata of the given documents keyed by document ID."""
        async with self._session_factory() as session:
            records = await self._records.get_many(session, document_ids, partition_key)
        return {record.id: record.to_metadata() for record in records}

    async def facets(self, partition_key: str, field: str) -> list[FacetValue]:
        """
        Distinct values of a filter field within a partition, most common first.

        Args:
            partition_key: Tenant/workspace scope
            field: One of DocumentRecordModel.FILTER_FIELDS

        Raises:
            ValueError: When ``field`` is not a filter field
        """
        if field not in DocumentRecordModel.FILTER_FIELDS:
            raise ValueError(
                f"Unknown facet field {field!r}; expected one of "
                f"{', '.join(DocumentRecordModel.FILTER_FIELDS)}"
            )
        column = getattr(DocumentRecordModel, field)
        count = func.count()
        stmt = (
            select(column, count)
            .where(DocumentRecordModel.partition_key == partition_key, column.is_not(None))
            .group_by(column)
            .order_by(count.desc(), column)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [FacetValue(value=value, count=total) for value, total in result.all()]

    async def stats(self, partition_key: str) -> MetadataStats:
        """Document, chunk and vector totals plus court and case-type breakdowns."""
        model = DocumentRecordModel
        stmt = select(
            func.count(),
            func.coalesce(func.sum(model.chunk_count), 0),
            func.coalesce(func.sum(model.vector_count), 0),
            func.min(model.year),
            func.max(model.year),
        ).where(model.partition_key == partition_key)
        async with self._session_factory() as session:
            documents, chunks, vectors, year_min, year_max = (await session.execute(stmt)).one()

        courts = await self.facets(partition_key, "court")
        case_types = await self.facets(partition_key, "case_type")
        return MetadataStats(
            partition_key=partition_key,
            documents=documents,
            chunks=chunks,
            vectors=vectors,
            year_min=year_min,
            year_max=year_max,
            courts={facet.value: facet.count for facet in courts},
            case_types={facet.value: facet.count for facet in case_types},
        )
