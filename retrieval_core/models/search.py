"""
Search models.

Filter predicates, query options and the ephemeral SearchCandidate record
produced during one query.

Dependencies: pydantic
System role: Query-time data structures
"""

import enum
from typing import Any

from pydantic import BaseModel, Field


class RetrievalPath(str, enum.Enum):
    """Retrieval paths in tie-break priority order."""

    SEMANTIC = "semantic"
    RERANKER = "reranker"
    KEYWORD = "keyword"
    METADATA = "metadata"


class FilterPredicates(BaseModel):
    """Field predicates for the structured store."""

    year: int | None = Field(default=None, description="Exact year")
    year_from: int | None = Field(default=None, description="Inclusive lower year bound")
    year_to: int | None = Field(default=None, description="Inclusive upper year bound")
    court: str | None = None
    case_type: str | None = None
    jurisdiction: str | None = None
    bench_type: str | None = None
    fulltext: str | None = Field(default=None, description="Residual free text")

    def is_empty(self) -> bool:
        return not self.active_fields()

    def active_fields(self) -> dict[str, Any]:
        """Predicates that are set, keyed by field name."""
        return self.model_dump(exclude_none=True)


class SearchOptions(BaseModel):
    """Caller options for a hybrid query."""

    top_n: int = Field(default=10, ge=1)
    similarity_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    filters: FilterPredicates | None = Field(
        default=None,
        description="Explicit predicates; overrides extraction from the query text",
    )
    strict: bool = Field(default=False, description="Raise if every path fails")
    path_timeout: float | None = Field(default=None, gt=0)


class SubScores(BaseModel):
    """Per-path scores, normalized to [0, 1] before fusion."""

    semantic: float = 0.0
    keyword: float = 0.0
    reranker: float = 0.0
    metadata: float = 0.0


class PathHits(BaseModel):
    """Which retrieval paths surfaced the candidate."""

    semantic: bool = False
    keyword: bool = False
    metadata: bool = False

    def count(self) -> int:
        return int(self.semantic) + int(self.keyword) + int(self.metadata)


class SearchCandidate(BaseModel):
    """Candidate produced during one query."""

    id: str = Field(description="Chunk/vector ID, or document ID for metadata-only hits")
    document_id: str
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    scores: SubScores = Field(default_factory=SubScores)
    paths: PathHits = Field(default_factory=PathHits)
    composite_score: float = 0.0
    quality_score: float | None = None
    source_tag: str | None = None
    citation: str | None = None
    grounding_instruction: str | None = None

    def priority_key(self) -> tuple[float, float, float, float, float]:
        """Sort key: composite first, then semantic > reranker > keyword > metadata."""
        return (
            -self.composite_score,
            -self.scores.semantic,
            -self.scores.reranker,
            -self.scores.keyword,
            -self.scores.metadata,
        )
