"""
Test suite for score normalization, fusion weights, deduplication and
result validation.
"""

import pytest

from retrieval_core.core.search import (
    FusionWeights,
    ResultValidator,
    deduplicate,
    normalize_scores,
    text_fingerprint,
)
from retrieval_core.models.search import SearchCandidate, SubScores


def candidate(id: str, document_id: str, text: str, score: float, **kwargs) -> SearchCandidate:
    return SearchCandidate(
        id=id, document_id=document_id, text=text, composite_score=score, **kwargs
    )


class TestScoring:
    """Test suite for normalize_scores() and FusionWeights."""

    def test_normalize_should_divide_by_maximum(self) -> None:
        assert normalize_scores({"a": 2.0, "b": 1.0}) == {"a": 1.0, "b": 0.5}

    def test_normalize_should_return_zeros_when_maximum_is_zero(self) -> None:
        assert normalize_scores({"a": 0.0, "b": 0.0}) == {"a": 0.0, "b": 0.0}

    def test_normalize_should_handle_empty_input(self) -> None:
        assert normalize_scores({}) == {}

    def test_without_reranker_should_rescale_remaining_weights(self) -> None:
        weights = FusionWeights().without_reranker()

        assert weights.reranker == 0.0
        assert weights.semantic == pytest.approx(0.4 / 0.7)
        assert weights.semantic + weights.keyword + weights.metadata == pytest.approx(1.0)

    def test_composite_should_weight_each_path(self) -> None:
        scores = SubScores(semantic=1.0, reranker=0.5, keyword=0.5, metadata=1.0)

        assert FusionWeights().composite(scores) == pytest.approx(0.4 + 0.15 + 0.1 + 0.1)

    def test_priority_key_should_break_ties_by_path_order(self) -> None:
        semantic_first = candidate("a", "d1", "text one", 0.5, scores=SubScores(semantic=0.9))
        keyword_first = candidate("b", "d2", "text two", 0.5, scores=SubScores(keyword=0.9))

        ranked = sorted([keyword_first, semantic_first], key=lambda c: c.priority_key())

        assert [c.id for c in ranked] == ["a", "b"]


class TestDeduplicate:
    """Test suite for deduplicate()."""

    def test_deduplicate_should_keep_highest_score_per_key(self) -> None:
        # Arrange
        low = candidate("c1", "d1", "The Same   Opening text", 0.4)
        high = candidate("c2", "d1", "the same opening TEXT", 0.9)
        other = candidate("c3", "d2", "the same opening text", 0.1)

        # Act
        result = deduplicate([low, high, other])

        # Assert
        assert [c.id for c in result] == ["c2", "c3"]

    def test_deduplicate_should_be_idempotent(self) -> None:
        candidates = [
            candidate("c1", "d1", "alpha", 0.3),
            candidate("c2", "d1", "alpha", 0.5),
            candidate("c3", "d1", "beta", 0.2),
        ]

        once = deduplicate(candidates)

        assert deduplicate(once) == once

    def test_fingerprint_should_only_consider_prefix(self) -> None:
        assert text_fingerprint("abc" + "x" * 10, prefix_length=3) == text_fingerprint(
            "ABC" + "y" * 10, prefix_length=3
        )


class TestResultValidator:
    """Test suite for ResultValidator."""

    def test_quality_score_should_blend_length_metadata_citation_and_relevance(self) -> None:
        item = candidate(
            "c1",
            "d1",
            "x" * 500,
            0.5,
            metadata={"court": "Supreme Court of India"},
            citation="2021 INSC 45",
        )

        assert ResultValidator.quality_score(item) == pytest.approx(0.3 + 0.2 + 0.2 + 0.15)

    def test_validate_should_drop_short_text(self) -> None:
        assert ResultValidator().validate([candidate("c1", "d1", "ok", 0.9)]) == []

    def test_validate_should_drop_zero_relevance(self) -> None:
        assert ResultValidator().validate([candidate("c1", "d1", "x" * 400, 0.0)]) == []

    def test_validate_should_drop_low_quality(self) -> None:
        """Test 50 chars with no metadata and low relevance scores below 0.3."""
        item = candidate("c1", "d1", "y" * 50, 0.2)

        assert ResultValidator().validate([item]) == []

    def test_validate_should_keep_passing_candidates_with_quality(self) -> None:
        item = candidate("c1", "d1", "z" * 300, 0.5)

        kept = ResultValidator().validate([item])

        assert kept == [item]
        assert kept[0].quality_score == pytest.approx(0.3 + 0.15)
