"""
Embedding stage configuration.

Sub-batch sizing, fan-out and retry behaviour for calls to the embedding
provider. Defaults are environment-tuned values, not capacity guarantees.

Dependencies: pydantic, pydantic_settings
System role: Embedding stage configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings


class EmbeddingSettings(BaseSettings):
    """Embedding provider and sub-batch dispatch settings."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    model: str = Field(
        default="models/text-embedding-004",
        description="Google embedding model ID",
    )
    output_dimensionality: int | None = Field(
        default=None,
        description="Fixed output dimension (provider default if None)",
    )
    batch_size: int = Field(
        default=100,
        ge=1,
        description="Maximum texts per provider request",
    )
    concurrency: int = Field(
        default=10,
        ge=1,
        description="Concurrent sub-batch requests per document",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per sub-batch before individual fallback",
    )
    base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base delay in seconds for exponential backoff",
    )
    individual_delay: float = Field(
        default=0.1,
        ge=0,
        description="Pause between individual fallback calls",
    )
    max_cooldown_wait: float = Field(
        default=60.0,
        ge=0,
        description="Upper bound on waiting for a cooling-down credential",
    )
