"""Metrics router — weighted aggregates per grouping dimension."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.api.deps import get_fact_filters, get_metrics_service, get_session
from commitlens.api.schemas.metrics import (
    ConsistencyResponse,
    DisagreementResponse,
    EfficiencyResponse,
    MetricsResponse,
)
from commitlens.api.schemas.report import BreakdownResponse
from commitlens.dao.commit_dao import FactFilters
from commitlens.engines.weighting import GroupBy, SortKey
from commitlens.engines.weighting.models import PATH_TOLERANCE
from commitlens.services import InvalidFilter
from commitlens.services.metrics_service import MetricsService

router = APIRouter()


@router.get("/{group_by}", response_model=MetricsResponse)
async def get_metrics(
    group_by: GroupBy,
    sort_by: SortKey = Query(SortKey.TOTAL_COMMITS),
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int | None = Query(None, ge=1, le=500),
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> MetricsResponse:
    result = await svc.get_metrics(
        session,
        group_by,
        filters,
        sort=sort_by,
        descending=sort_dir == "desc",
        limit=limit,
    )
    return MetricsResponse.from_result(result)


@router.get("/{group_by}/efficiency", response_model=EfficiencyResponse)
async def get_efficiency(
    group_by: GroupBy,
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> EfficiencyResponse:
    rpt = await svc.get_efficiency(session, group_by, filters)
    return EfficiencyResponse.from_report(rpt)


@router.get("/{group_by}/consistency", response_model=ConsistencyResponse)
async def get_consistency(
    group_by: GroupBy,
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> ConsistencyResponse:
    disagreements = await svc.verify_paths(session, group_by)
    return ConsistencyResponse(
        group_by=group_by.value,
        tolerance=PATH_TOLERANCE,
        consistent=not disagreements,
        disagreements=[DisagreementResponse.from_disagreement(d) for d in disagreements],
    )


@router.get("/{group_by}/by/{within}", response_model=BreakdownResponse)
async def get_breakdown(
    group_by: GroupBy,
    within: GroupBy,
    sort_by: SortKey = Query(SortKey.TOTAL_COMMITS),
    sort_dir: str = Query("desc", pattern="^(asc|desc)$"),
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> BreakdownResponse:
    if group_by is within:
        raise InvalidFilter(f"cannot break {group_by.value!r} down by itself")
    result = await svc.get_breakdown(
        session, group_by, within, filters, sort=sort_by, descending=sort_dir == "desc"
    )
    return BreakdownResponse.from_result(result)
