"""
Generic CRUD shared by the record and linkage tables.

Sessions are passed in by the caller, which owns the transaction; nothing
here commits.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Primary-key operations for one mapped model.

    Type Parameters:
        ModelT: Mapped class; composite keys are passed as tuples
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        """
        Insert one row and return it with server defaults loaded.

        Args:
            session: Caller-owned session
            **values: Column values keyed by attribute name
        """
        instance = self.model(**values)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, ident: Any) -> ModelT | None:
        """
        Fetch one row by primary key.

        Args:
            session: Caller-owned session
            ident: Key value, or a tuple in column order for composite keys
        """
        return await session.get(self.model, ident)

    async def delete_by_id(self, session: AsyncSession, ident: Any) -> bool:
        """Delete by primary key. False when no row matched."""
        instance = await session.get(self.model, ident)
        if instance is None:
            return False
        await session.delete(instance)
        await session.flush()
        return True

    async def exists(self, session: AsyncSession, ident: Any) -> bool:
        return await session.get(self.model, ident) is not None

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(self.model))
        return int(result.scalar_one())
