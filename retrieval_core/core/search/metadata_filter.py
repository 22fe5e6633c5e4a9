"""
Metadata filter search.

Turns free-text queries into field predicates for the structured store
and runs predicate searches scoped to a partition. Recognized patterns take
precedence; whatever text remains becomes a full-text predicate.

Dependencies: re, retrieval_core.boundary.db
System role: Metadata retrieval path of hybrid search
"""

import logging
import re
from typing import Any, Protocol, Sequence, runtime_checkable

from retrieval_core.boundary.db.structured_store import FacetValue, MetadataStats, StructuredRow
from retrieval_core.models.search import FilterPredicates

logger = logging.getLogger(__name__)

MIN_FULLTEXT_LENGTH = 5

_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")

_COURTS: tuple[tuple[re.Pattern, str | None], ...] = (
    (re.compile(r"\bsupreme court\b", re.IGNORECASE), "Supreme Court of India"),
    (re.compile(r"\bhigh court of ([a-z]+)\b", re.IGNORECASE), None),
    (re.compile(r"\bdelhi high court\b", re.IGNORECASE), "High Court of Delhi"),
    (re.compile(r"\bbombay high court\b", re.IGNORECASE), "High Court of Bombay"),
    (re.compile(r"\bcalcutta high court\b", re.IGNORECASE), "High Court of Calcutta"),
    (re.compile(r"\bmadras high court\b", re.IGNORECASE), "High Court of Madras"),
)

_CASE_TYPES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bcriminal appeal\b", re.IGNORECASE), "Criminal Appeal"),
    (re.compile(r"\bcivil appeal\b", re.IGNORECASE), "Civil Appeal"),
    (re.compile(r"\bwrit petition\b", re.IGNORECASE), "Writ Petition"),
    (re.compile(r"\bspecial leave petition\b|\bslp\b", re.IGNORECASE), "Special Leave Petition"),
    (re.compile(r"\bpil\b|\bpublic interest litigation\b", re.IGNORECASE), "PIL"),
    (re.compile(r"\bbail\b", re.IGNORECASE), "Bail Application"),
)

_BENCHES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bconstitution bench\b", re.IGNORECASE), "Constitution Bench"),
    (re.compile(r"\bdivision bench\b", re.IGNORECASE), "Division Bench"),
)


def extract_filters(query: str) -> FilterPredicates:
    """
    Derive field predicates from a free-text query.

    Args:
        query: Natural-language query

    Returns:
        FilterPredicates: Recognized year, court, case type, jurisdiction and
        bench type, plus the residual text as ``fulltext`` when it is longer
        than five characters
    """
    found: dict[str, Any] = {}
    spans: list[tuple[int, int]] = []

    year = _YEAR.search(query)
    if year:
        found["year"] = int(year.group(1))
        spans.append(year.span())

    for pattern, value in _COURTS:
        match = pattern.search(query)
        if match:
            found["court"] = value or f"High Court of {match.group(1).capitalize()}"
            spans.append(match.span())
            break

    for pattern, value in _CASE_TYPES:
        match = pattern.search(query)
        if match:
            found["case_type"] = value
            spans.append(match.span())
            break

    if re.search(r"\bcriminal\b", query, re.IGNORECASE):
        found["jurisdiction"] = "Criminal"
    elif re.search(r"\bcivil\b", query, re.IGNORECASE):
        found["jurisdiction"] = "Civil"

    for pattern, value in _BENCHES:
        match = pattern.search(query)
        if match:
            found["bench_type"] = value
            spans.append(match.span())
            break

    residual = query
    for start, end in sorted(spans, reverse=True):
        residual = residual[:start] + " " + residual[end:]
    residual = " ".join(residual.split())
    if len(residual) > MIN_FULLTEXT_LENGTH:
        found["fulltext"] = residual

    return FilterPredicates(**found)


@runtime_checkable
class StructuredStore(Protocol):
    """Predicate query interface over document metadata."""

    async def query(
        self,
        predicates: FilterPredicates,
        partition_key: str,
        limit: int,
    ) -> list[StructuredRow]: ...

    async def get_metadata(
        self,
        document_ids: Sequence[str],
        partition_key: str,
    ) -> dict[str, dict[str, Any]]: ...

    async def facets(self, partition_key: str, field: str) -> list[FacetValue]: ...

    async def stats(self, partition_key: str) -> MetadataStats: ...


class MetadataFilterSearch:
    """Predicate search over the structured store."""

    def __init__(self, store: StructuredStore) -> None:
        self._store = store

    async def search(
        self,
        predicates: FilterPredicates,
        partition_key: str,
        limit: int,
    ) -> list[StructuredRow]:
        """
        Rows matching the predicates within a partition.

        Returns:
            list[StructuredRow]: Empty when no predicate is set
        """
        if predicates.is_empty():
            return []
        rows = await self._store.query(predicates, partition_key, limit)
        logger.debug(
            f"{__name__}:search - {len(rows)} metadata matches",
            extra={"partition_key": partition_key, "fields": list(predicates.active_fields())},
        )
        return rows

    async def enrich(
        self,
        document_ids: Sequence[str],
        partition_key: str,
    ) -> dict[str, dict[str, Any]]:
        """Stored metadata for the given documents."""
        if not document_ids:
            return {}
        return await self._store.get_metadata(list(document_ids), partition_key)

    async def facets(self, partition_key: str, field: str) -> list[FacetValue]:
        """Distinct values of ``field`` in a partition, for building filter choices."""
        return await self._store.facets(partition_key, field)

    async def stats(self, partition_key: str) -> MetadataStats:
        return await self._store.stats(partition_key)
