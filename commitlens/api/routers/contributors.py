"""Contributors router — date bounds and per-person performance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.api.deps import get_fact_filters, get_metrics_service, get_session
from commitlens.api.schemas.metrics import DateRangeResponse, PersonalPerformanceResponse
from commitlens.dao.commit_dao import FactFilters
from commitlens.services.metrics_service import MetricsService

router = APIRouter()


@router.get("/contributors/date-range", response_model=DateRangeResponse)
async def get_date_range(
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> DateRangeResponse:
    return DateRangeResponse(**await svc.get_date_range(session))


@router.get("/personal-performance", response_model=PersonalPerformanceResponse)
async def get_personal_performance(
    author: str = Query(..., min_length=1, description="author name or email"),
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: MetricsService = Depends(get_metrics_service),
) -> PersonalPerformanceResponse:
    result = await svc.get_personal_performance(session, author, filters)
    return PersonalPerformanceResponse.from_result(result)
