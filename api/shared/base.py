"""Base repository shared by the feature repositories."""
from abc import ABC
from typing import Any, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.shared.entities.base import BaseEntity

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(ABC, Generic[T]):
    """Generic async repository with common CRUD operations."""

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Get entity by ID."""
        stmt = select(self.model).where(self.model.id == str(entity_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete(self, entity_id: str) -> bool:
        """Delete entity by ID."""
        stmt = delete(self.model).where(self.model.id == str(entity_id))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def count(self, **filters: Any) -> int:
        """Count entities with filters."""
        stmt = self._apply_filters(select(func.count(self.model.id)), filters)
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    def _apply_filters(self, stmt: Select, filters: dict[str, Any]) -> Select:
        for field_name, value in filters.items():
            if value is None or not hasattr(self.model, field_name):
                continue
            field = getattr(self.model, field_name)
            if isinstance(value, (list, tuple)):
                stmt = stmt.where(field.in_(value))
            else:
                stmt = stmt.where(field == value)
        return stmt

    def _order(self, stmt: Select, order_by: Optional[str]) -> Select:
        if not order_by:
            return stmt
        descending = order_by.startswith("-")
        field_name = order_by.lstrip("-")
        if not hasattr(self.model, field_name):
            return stmt
        field = getattr(self.model, field_name)
        return stmt.order_by(field.desc() if descending else field.asc())

    async def _paginate(
        self,
        stmt: Select,
        count_stmt: Select,
        *,
        offset: int,
        limit: int,
        order_by: Optional[str] = None,
    ) -> Tuple[List[T], int]:
        stmt = self._order(stmt, order_by).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0
        items: Sequence[T] = result.scalars().all()
        return list(items), int(total)
