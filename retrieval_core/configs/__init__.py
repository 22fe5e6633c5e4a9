"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from retrieval_core.configs.credentials import CredentialSettings
from retrieval_core.configs.database import DatabaseSettings
from retrieval_core.configs.embedding import EmbeddingSettings
from retrieval_core.configs.ingestion import IngestionSettings
from retrieval_core.configs.search import SearchSettings
from retrieval_core.configs.settings import Settings, get_settings
from retrieval_core.configs.vector_store import VectorStoreSettings

__all__ = [
    "Settings",
    "get_settings",
    "CredentialSettings",
    "DatabaseSettings",
    "EmbeddingSettings",
    "IngestionSettings",
    "SearchSettings",
    "VectorStoreSettings",
]
