"""
Test suite for the pydantic-settings configuration modules.
"""

import pytest
from pydantic import ValidationError

from retrieval_core.configs import (
    CredentialSettings,
    IngestionSettings,
    SearchSettings,
    Settings,
    get_settings,
)
from retrieval_core.configs.credentials import MAX_NUMBERED_KEYS
from retrieval_core.core.search import FusionWeights


@pytest.fixture
def clean_key_env(monkeypatch):
    monkeypatch.delenv("EMBEDDING_API_KEYS", raising=False)
    for i in range(1, MAX_NUMBERED_KEYS + 1):
        monkeypatch.delenv(f"EMBEDDING_API_KEY_{i}", raising=False)
    return monkeypatch


class TestIngestionSettings:
    """Test suite for IngestionSettings."""

    def test_settings_should_reject_overlap_not_below_chunk_size(self) -> None:
        with pytest.raises(ValidationError, match="chunk_overlap"):
            IngestionSettings(chunk_size=100, chunk_overlap=100)

    def test_settings_should_read_prefixed_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("INGESTION_BATCH_SIZE", "25")

        assert IngestionSettings().batch_size == 25


class TestCredentialSettings:
    """Test suite for CredentialSettings.resolved_keys()."""

    def test_resolved_keys_should_merge_list_and_numbered_keys(self, clean_key_env) -> None:
        # Arrange
        clean_key_env.setenv("EMBEDDING_API_KEYS", "alpha, beta,,alpha")
        clean_key_env.setenv("EMBEDDING_API_KEY_1", "gamma")
        clean_key_env.setenv("EMBEDDING_API_KEY_2", "beta")

        # Act
        keys = CredentialSettings().resolved_keys()

        # Assert
        assert keys == ["alpha", "beta", "gamma"]

    def test_resolved_keys_should_be_empty_without_configuration(self, clean_key_env) -> None:
        assert CredentialSettings().resolved_keys() == []


class TestSearchSettings:
    """Test suite for SearchSettings and fusion weights."""

    def test_weights_should_default_to_documented_split(self) -> None:
        weights = FusionWeights.from_settings(SearchSettings())

        assert (weights.semantic, weights.reranker, weights.keyword, weights.metadata) == (
            0.4,
            0.3,
            0.2,
            0.1,
        )

    def test_weights_should_follow_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SEARCH_SEMANTIC_WEIGHT", "0.6")

        assert FusionWeights.from_settings(SearchSettings()).semantic == 0.6


class TestSettings:
    """Test suite for the aggregated Settings."""

    def test_settings_should_aggregate_sections(self) -> None:
        settings = Settings()

        assert isinstance(settings.search, SearchSettings)
        assert settings.ingestion.chunk_overlap < settings.ingestion.chunk_size

    def test_get_settings_should_be_cached(self) -> None:
        get_settings.cache_clear()

        assert get_settings() is get_settings()
        get_settings.cache_clear()
