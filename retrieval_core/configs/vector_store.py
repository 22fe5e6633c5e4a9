"""
Vector store configuration settings.

Selects the vector store backend (Qdrant for production, in-memory for
development) and its write sizing.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (memory for dev, Qdrant for prod)."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_STORE_")

    provider: str = Field(
        default="qdrant",
        description="Vector store backend: 'qdrant' or 'memory'",
    )
    url: str = Field(default="http://localhost:6333", description="Qdrant endpoint")
    api_key: str | None = Field(default=None, description="Qdrant API key")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    write_batch_size: int = Field(
        default=2000,
        ge=1,
        description="Points per upsert request",
    )
