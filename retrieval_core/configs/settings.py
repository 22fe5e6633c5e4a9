"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the retrieval core
"""

from functools import lru_cache

from pydantic import Field

from retrieval_core.configs.base import BaseSettings
from retrieval_core.configs.credentials import CredentialSettings
from retrieval_core.configs.database import DatabaseSettings
from retrieval_core.configs.embedding import EmbeddingSettings
from retrieval_core.configs.ingestion import IngestionSettings
from retrieval_core.configs.search import SearchSettings
from retrieval_core.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified settings aggregating all config modules."""

    credentials: CredentialSettings = Field(default_factory=CredentialSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables are loaded once at first call.

    Returns:
        Settings: Application settings instance

    Usage:
        from retrieval_core.configs import get_settings
        settings = get_settings()
    """
    return Settings()
