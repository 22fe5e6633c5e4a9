"""
Result validation.

Drops candidates that are too short, have no relevance, or whose quality
score falls below the threshold. Never raises; the result may be empty.

Dependencies: logging
System role: Final quality gate for hybrid search results
"""

import logging
from typing import Sequence

from retrieval_core.models.search import SearchCandidate

logger = logging.getLogger(__name__)


class ResultValidator:
    """Quality filter over fused candidates."""

    def __init__(self, min_text_length: int = 10, quality_threshold: float = 0.3) -> None:
        """
        Initialize validator.

        Args:
            min_text_length: Shorter texts are dropped
            quality_threshold: Minimum quality score kept
        """
        self.min_text_length = min_text_length
        self.quality_threshold = quality_threshold

    @staticmethod
    def quality_score(candidate: SearchCandidate) -> float:
        """
        Blend of text length, metadata presence, citation presence and relevance.

        Returns:
            float: min(len/1000, 0.3) + 0.2 (metadata) + 0.2 (citation)
            + 0.3 * relevance, capped at 1.0
        """
        score = min(len(candidate.text) / 1000, 0.3)
        if candidate.metadata:
            score += 0.2
        if candidate.citation:
            score += 0.2
        score += 0.3 * min(max(candidate.composite_score, 0.0), 1.0)
        return min(score, 1.0)

    def validate(self, candidates: Sequence[SearchCandidate]) -> list[SearchCandidate]:
        """Return the candidates that pass, with ``quality_score`` set."""
        kept = []
        for candidate in candidates:
            quality = self.quality_score(candidate)
            reason = None
            if len(candidate.text.strip()) < self.min_text_length:
                reason = "text too short"
            elif candidate.composite_score <= 0:
                reason = "zero relevance"
            elif quality < self.quality_threshold:
                reason = f"quality {quality:.2f} below threshold"

            if reason:
                logger.debug(
                    f"{__name__}:validate - Dropped {candidate.id}: {reason}"
                )
                continue
            candidate.quality_score = quality
            kept.append(candidate)
        return kept
