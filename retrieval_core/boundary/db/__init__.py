"""
Database boundary: ORM base, connection helpers, models, CRUD and the SQL
structured store.

Exports: Base, get_async_engine, get_async_session_factory, init_models,
SQLStructuredStore, StructuredRow, FacetValue, MetadataStats
"""

from .base import Base, TimestampMixin
from .connection import get_async_engine, get_async_session_factory, init_models
from .structured_store import FacetValue, MetadataStats, SQLStructuredStore, StructuredRow

__all__ = [
    "Base",
    "TimestampMixin",
    "get_async_engine",
    "get_async_session_factory",
    "init_models",
    "SQLStructuredStore",
    "StructuredRow",
    "FacetValue",
    "MetadataStats",
]
