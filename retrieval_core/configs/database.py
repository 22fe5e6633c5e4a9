"""
Database configuration settings.

Connection parameters for the structured metadata store and the
document-to-vector linkage index.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from retrieval_core.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """Async SQLAlchemy database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///./retrieval.db",
        description="SQLAlchemy async database URL",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")
    pool_pre_ping: bool = Field(default=True, description="Verify connections before use")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite."""
        return self.url.startswith("sqlite")
