"""
Hybrid search configuration settings.

Fusion weights, per-path timeout, BM25 parameters and the post-fusion
validation thresholds.

Dependencies: pydantic, pydantic_settings
System role: Query-time configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings


class SearchSettings(BaseSettings):
    """Settings for the hybrid fusion engine."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    top_n: int = Field(default=10, ge=1, description="Results returned per query")
    similarity_threshold: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Minimum vector similarity",
    )
    candidate_multiplier: int = Field(
        default=2,
        ge=1,
        description="Each path fetches top_n * multiplier candidates",
    )
    path_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds before a slow retrieval path counts as empty",
    )
    strict: bool = Field(
        default=False,
        description="Raise when every retrieval path fails",
    )

    # Fusion weights
    semantic_weight: float = Field(default=0.4, ge=0)
    reranker_weight: float = Field(default=0.3, ge=0)
    keyword_weight: float = Field(default=0.2, ge=0)
    metadata_weight: float = Field(default=0.1, ge=0)
    multi_path_bonus: float = Field(default=0.10, ge=0)
    near_duplicate_penalty: float = Field(default=0.10, ge=0)

    # BM25
    bm25_k1: float = Field(default=1.5, gt=0)
    bm25_b: float = Field(default=0.75, ge=0, le=1)

    # Dedup and validation
    dedup_prefix_length: int = Field(default=200, ge=1)
    min_text_length: int = Field(default=10, ge=0)
    quality_threshold: float = Field(default=0.3, ge=0, le=1)
