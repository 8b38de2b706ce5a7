"""Generic base DAO — ORM CRUD helpers shared by table DAOs."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # columns no caller may rewrite through update()
    immutable: frozenset[str] = frozenset({"id", "created_at", "updated_at"})

    @staticmethod
    def _require_pk(pk: Any) -> None:
        if pk is None:
            raise ValueError("pk must not be None")

    async def get_by_id(self, session: AsyncSession, pk: Any) -> ModelT | None:
        self._require_pk(pk)
        return await session.get(self.model, pk)

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    def _check_writable(self, values: dict[str, Any]) -> None:
        columns = self.model.__mapper__.column_attrs.keys()
        for key in values:
            if key in self.immutable:
                raise AttributeError(f"'{key}' is immutable and cannot be updated")
            if key not in columns:
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")

    async def update(self, session: AsyncSession, pk: Any, **values: Any) -> ModelT | None:
        """Set *values* on the row with primary key *pk*; None if it does not exist."""
        self._check_writable(values)
        obj = await self.get_by_id(session, pk)
        if obj is None:
            return None
        for key, val in values.items():
            setattr(obj, key, val)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def count(self, session: AsyncSession) -> int:
        query = select(func.count()).select_from(self.model.__table__)
        result = await session.execute(query)
        return result.scalar_one()
