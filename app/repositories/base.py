"""
Base repository with the operations shared by alert and match access.

Single-row writes go through the ORM (create/update). Bulk state changes
such as watermarks, sent flags and pausing are Core UPDATE statements, so
they never depend on what the session has loaded.
"""
from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import BaseModel

# Generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Usage:
        class AlertRepository(BaseRepository[JobAlert]):
            def __init__(self):
                super().__init__(JobAlert)
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get_by_id(
        self,
        db: AsyncSession,
        id: UUID,
    ) -> Optional[ModelType]:
        result = await db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        **kwargs: Any,
    ) -> ModelType:
        """Insert one row and return it with server defaults loaded."""
        instance = self.model(**kwargs)
        db.add(instance)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def update(
        self,
        db: AsyncSession,
        instance: ModelType,
        **kwargs: Any,
    ) -> ModelType:
        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        await db.flush()
        await db.refresh(instance)
        return instance

    async def _count(self, db: AsyncSession, *criteria) -> int:
        result = await db.execute(
            select(func.count()).select_from(self.model).where(*criteria)
        )
        return result.scalar() or 0

    async def _update_where(
        self,
        db: AsyncSession,
        criteria: list,
        values: dict,
        *returning,
    ) -> CursorResult:
        """Bulk UPDATE ... WHERE, optionally RETURNING columns."""
        stmt = update(self.model).where(*criteria).values(**values)
        if returning:
            stmt = stmt.returning(*returning)
        result = await db.execute(stmt)
        await db.flush()
        return result
