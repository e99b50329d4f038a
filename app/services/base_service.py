# app/services/base_service.py
"""Base service with common CRUD operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, Optional, TypeVar, Generic

from ..utils.pagination import Paginator

T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _scoped(self, stmt, org_id: Any = None, include_deleted: bool = False, **filters):
        if not include_deleted:
            stmt = stmt.where(self.model.is_deleted == False)
        if org_id is not None and hasattr(self.model, "org_id"):
            stmt = stmt.where(self.model.org_id == org_id)
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        return stmt

    async def get(self, id: Any, org_id: Any = None, include_deleted: bool = False) -> Optional[T]:
        stmt = self._scoped(select(self.model).where(self.model.id == id), org_id, include_deleted)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_multi(self, skip: int = 0, limit: int = 100, org_id: Any = None, **filters):
        stmt = self._scoped(select(self.model), org_id, **filters)
        stmt = stmt.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_paginated(
        self,
        page: int = 1,
        size: int = 20,
        org_id: Any = None,
        order_by: str = "created_at",
        sort: str = "desc",
        **filters
    ) -> Dict[str, Any]:
        """Get a page of non-deleted rows plus the total count"""
        stmt = self._scoped(select(self.model), org_id, **filters)
        count_stmt = self._scoped(select(func.count()).select_from(self.model), org_id, **filters)

        total = (await self.db.execute(count_stmt)).scalar() or 0

        order_field = getattr(self.model, order_by, self.model.created_at)
        stmt = stmt.order_by(order_field.desc() if sort.lower() == "desc" else order_field.asc())
        stmt = stmt.offset(Paginator.calculate_offset(page, size)).limit(size)
        items = (await self.db.execute(stmt)).scalars().all()

        return {"items": items, "total": total, "page": page, "size": size}

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: T, obj_in: Dict) -> T:
        for key, value in obj_in.items():
            setattr(obj, key, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def soft_delete(self, obj: T) -> T:
        obj.mark_deleted()
        await self.db.commit()
        return obj

    async def hard_delete(self, obj: T) -> None:
        """Permanently delete record from database"""
        await self.db.delete(obj)
        await self.db.commit()

    async def count_active(self, org_id: Any = None, **filters) -> int:
        """Get count of non-deleted records"""
        stmt = self._scoped(select(func.count()).select_from(self.model), org_id, **filters)
        result = await self.db.execute(stmt)
        return result.scalar() or 0
