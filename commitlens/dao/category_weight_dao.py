"""CategoryWeightDAO — category_weights table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.base import BaseDAO
from commitlens.engines.weighting.models import CategoryWeightEntry
from commitlens.models.category_weight import CategoryWeight
from commitlens.services import NotFoundError


class CategoryWeightDAO(BaseDAO[CategoryWeight]):
    model = CategoryWeight

    async def get_weight_map(self, session: AsyncSession) -> dict[str, int]:
        """Snapshot of every category's current weight.

        Read once per request and passed to the resolver as a read-only lookup.
        """
        result = await session.execute(select(CategoryWeight.category, CategoryWeight.weight))
        entries = [CategoryWeightEntry.from_row(row) for row in result]
        return {e.category: e.weight for e in entries}

    async def list_all(self, session: AsyncSession) -> list[CategoryWeight]:
        stmt = select(CategoryWeight).order_by(CategoryWeight.category)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def ensure(self, session: AsyncSession, category: str) -> CategoryWeight:
        """Return the row for *category*, creating it at full weight on first use."""
        row = await self.get_by_id(session, category)
        if row is None:
            row = await self.create(session, category=category)
        return row

    async def set_weight(self, session: AsyncSession, category: str, weight: int) -> CategoryWeight:
        """Upsert *category* with *weight*. Range checks belong to the caller."""
        row = await self.get_by_id(session, category)
        if row is None:
            return await self.create(session, category=category, weight=weight)
        updated = await self.update(session, category, weight=weight)
        if updated is None:
            raise NotFoundError(f"category {category!r} was removed during the update")
        return updated
