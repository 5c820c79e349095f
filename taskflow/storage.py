"""
Storage port over an ``AsyncSession``.

The service layer only talks to the database through ``Storage``: lookups by
id or unique key, filtered scans, save/delete, and a transaction scope that
commits on success and rolls back on any exception.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from taskflow.exceptions import NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Storage:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, model, entity_id):
        if entity_id is None:
            return None
        result = await self.db.execute(select(model).filter(model.id == entity_id))
        return result.scalars().first()

    async def get(self, model, entity_id):
        entity = await self.find(model, entity_id)
        if entity is None:
            logger.warning("%s not found with ID: %s", model.__name__, entity_id)
            raise NotFound(model.__name__, entity_id)
        return entity

    async def find_by_unique_key(self, model, key: str, value):
        result = await self.db.execute(select(model).filter(getattr(model, key) == value))
        entity = result.scalars().first()
        if entity is None:
            logger.warning("%s not found with %s: %s", model.__name__, key, value)
            raise NotFound(model.__name__, value, key_name=key)
        return entity

    async def exists_by_unique_key(self, model, key: str, value, exclude_id=None) -> bool:
        query = select(model.id).filter(getattr(model, key) == value)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.first() is not None

    async def find_by(self, model, *criteria, order_by=None, limit: int | None = None, **filters) -> list:
        query = select(model).filter(*criteria).filter_by(**filters)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
        else:
            query = query.order_by(model.id)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by(self, model, *criteria, **filters) -> int:
        query = select(func.count(model.id)).filter(*criteria).filter_by(**filters)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def save(self, entity):
        self.db.add(entity)
        await self.db.flush()
        # Pull server-side defaults (ids, timestamps) back onto the instance
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity):
        await self.db.delete(entity)
        await self.db.flush()

    @asynccontextmanager
    async def transaction(self):
        try:
            yield self
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def run_in_transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        async with self.transaction():
            return await work()

    async def refresh(self, entity: Any):
        await self.db.refresh(entity)
        return entity
