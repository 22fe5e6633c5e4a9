"""
Score normalization and fusion weights.

Dependencies: dataclasses
System role: Scoring primitives for hybrid fusion
"""

from dataclasses import dataclass
from typing import Mapping

from retrieval_core.configs.search import SearchSettings
from retrieval_core.models.search import SubScores


def normalize_scores(scores: Mapping[str, float]) -> dict[str, float]:
    """Divide by the maximum so scores land in [0, 1]; all 0 when the max is 0."""
    if not scores:
        return {}
    top = max(scores.values())
    if top <= 0:
        return {key: 0.0 for key in scores}
    return {key: max(0.0, value) / top for key, value in scores.items()}


@dataclass(frozen=True)
class FusionWeights:
    semantic: float = 0.4
    reranker: float = 0.3
    keyword: float = 0.2
    metadata: float = 0.1

    @classmethod
    def from_settings(cls, settings: SearchSettings) -> "FusionWeights":
        return cls(
            semantic=settings.semantic_weight,
            reranker=settings.reranker_weight,
            keyword=settings.keyword_weight,
            metadata=settings.metadata_weight,
        )

    def without_reranker(self) -> "FusionWeights":
        """Zero the reranker weight and rescale the rest to sum to 1."""
        remaining = self.semantic + self.keyword + self.metadata
        if remaining <= 0:
            return FusionWeights(semantic=0.0, reranker=0.0, keyword=0.0, metadata=0.0)
        return FusionWeights(
            semantic=self.semantic / remaining,
            reranker=0.0,
            keyword=self.keyword / remaining,
            metadata=self.metadata / remaining,
        )

    def composite(self, scores: SubScores) -> float:
        return (
            self.semantic * scores.semantic
            + self.reranker * scores.reranker
            + self.keyword * scores.keyword
            + self.metadata * scores.metadata
        )
