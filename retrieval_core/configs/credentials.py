"""
Credential pool configuration.

Loads the embedding provider API keys that feed the credential rotator.
Keys may be given as a comma-separated list (EMBEDDING_API_KEYS) and/or as
numbered variables (EMBEDDING_API_KEY_1 .. EMBEDDING_API_KEY_20).

Dependencies: pydantic, pydantic_settings
System role: Credential rotator configuration
"""

import os

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings

MAX_NUMBERED_KEYS = 20


class CredentialSettings(BaseSettings):
    """Rate-limited API credential pool."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    api_keys: str = Field(
        default="",
        description="Comma-separated API keys for the embedding provider",
    )
    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before a credential is disabled",
    )
    rate_limit_cooldown: float = Field(
        default=60.0,
        gt=0,
        description="Default cooldown in seconds after a rate-limit signal",
    )

    def resolved_keys(self) -> list[str]:
        """
        Merge explicit keys with numbered environment keys.

        Returns:
            list[str]: De-duplicated keys in declaration order
        """
        keys = [key.strip() for key in self.api_keys.split(",") if key.strip()]
        for i in range(1, MAX_NUMBERED_KEYS + 1):
            key = os.environ.get(f"EMBEDDING_API_KEY_{i}", "").strip()
            if key:
                keys.append(key)
        return list(dict.fromkeys(keys))
