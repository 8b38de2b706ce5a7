"""Dependency injection — session, filters, and service singletons."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import date

from fastapi import Query
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from commitlens.core.database import build_engine
from commitlens.dao.aggregate_dao import AggregateDAO
from commitlens.dao.category_weight_dao import CategoryWeightDAO
from commitlens.dao.commit_dao import CommitDAO, FactFilters
from commitlens.dao.repository_dao import RepositoryDAO
from commitlens.services.metrics_service import MetricsService
from commitlens.services.weight_service import WeightService

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_commit_dao = CommitDAO()
_category_weight_dao = CategoryWeightDAO()
_aggregate_dao = AggregateDAO()
_repository_dao = RepositoryDAO()

# ---------------------------------------------------------------------------
# Service singletons
# ---------------------------------------------------------------------------
_metrics_service = MetricsService(
    _commit_dao,
    _category_weight_dao,
    _aggregate_dao,
    _repository_dao,
    display_limit=int(os.environ.get("COMMITLENS_DISPLAY_LIMIT", "15")),
)
_weight_service = WeightService(_commit_dao, _category_weight_dao, _aggregate_dao)

# ---------------------------------------------------------------------------
# Engine / session factory (initialised by app lifespan)
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    url = database_url or os.environ.get(
        "COMMITLENS_DATABASE_URL", "postgresql+asyncpg://localhost/commitlens"
    )
    _engine = build_engine(url)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Query filters
# ---------------------------------------------------------------------------


def get_fact_filters(
    repository: str | None = Query(None, description='repository name, or "all"'),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    author: str | None = Query(None, description="author name or email"),
) -> FactFilters:
    return FactFilters(
        repository=repository,
        date_from=date_from,
        date_to=date_to,
        author=author,
    )


# ---------------------------------------------------------------------------
# Service getters (for Depends())
# ---------------------------------------------------------------------------


def get_metrics_service() -> MetricsService:
    return _metrics_service


def get_weight_service() -> WeightService:
    return _weight_service


def get_aggregate_dao() -> AggregateDAO:
    return _aggregate_dao
