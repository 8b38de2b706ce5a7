"""Reports router — dashboard views built on two-dimension breakdowns and summaries."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.api.deps import get_fact_filters, get_metrics_service, get_session
from commitlens.api.schemas.report import (
    BeforeAfterResponse,
    BreakdownResponse,
    RepositoryItem,
    SummaryResponse,
)
from commitlens.dao.commit_dao import FactFilters
from commitlens.engines.weighting import GroupBy, SortKey
from commitlens.services.metrics_service import DAILY_ACTIVITY_DAYS, MetricsService

router = APIRouter()


@router.get("/repos", response_model=list[RepositoryItem])
async def list_repositories(
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> list[RepositoryItem]:
    rows = await svc.list_repositories(session)
    return [RepositoryItem.from_row(row) for row in rows]


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> SummaryResponse:
    return SummaryResponse.from_result(await svc.get_summary(session, filters))


@router.get("/daily-activity", response_model=BreakdownResponse)
async def get_daily_activity(
    days: int = Query(DAILY_ACTIVITY_DAYS, ge=1, le=366),
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BreakdownResponse:
    result = await svc.get_daily_activity(session, filters, days=days)
    return BreakdownResponse.from_result(result)


@router.get("/category-trends", response_model=BreakdownResponse)
async def get_category_trends(
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BreakdownResponse:
    """Categories per month, newest month first."""
    result = await svc.get_breakdown(
        session, GroupBy.MONTH, GroupBy.CATEGORY, filters, sort=SortKey.GROUP
    )
    return BreakdownResponse.from_result(result)


@router.get("/category-by-repo", response_model=BreakdownResponse)
async def get_category_by_repo(
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BreakdownResponse:
    result = await svc.get_breakdown(
        session,
        GroupBy.REPOSITORY,
        GroupBy.CATEGORY,
        filters,
        sort=SortKey.GROUP,
        descending=False,
    )
    return BreakdownResponse.from_result(result)


@router.get("/compare-repos", response_model=BreakdownResponse)
async def compare_repositories(
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BreakdownResponse:
    """Repositories by commit volume, each with its monthly series."""
    result = await svc.get_breakdown(session, GroupBy.REPOSITORY, GroupBy.MONTH, filters)
    return BreakdownResponse.from_result(result)


@router.get("/before-after/{repository}", response_model=BeforeAfterResponse)
async def get_before_after(
    repository: str,
    before_start: date = Query(...),
    before_end: date = Query(...),
    after_start: date = Query(...),
    after_end: date = Query(...),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BeforeAfterResponse:
    result = await svc.get_before_after(
        session,
        repository,
        before=(before_start, before_end),
        after=(after_start, after_end),
    )
    return BeforeAfterResponse.from_result(result)
