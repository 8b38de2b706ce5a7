"""Categories router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.api.deps import get_session, get_weight_service
from commitlens.api.schemas.category import CategoryWeightItem, SetCategoryWeightRequest
from commitlens.services.weight_service import WeightService

router = APIRouter()


@router.get("/weights", response_model=list[CategoryWeightItem])
async def list_category_weights(
    session: AsyncSession = Depends(get_session),
    svc: WeightService = Depends(get_weight_service),
) -> list[CategoryWeightItem]:
    rows = await svc.list_category_weights(session)
    return [CategoryWeightItem.model_validate(row) for row in rows]


@router.put("/{category}/weight", response_model=CategoryWeightItem)
async def set_category_weight(
    category: str,
    body: SetCategoryWeightRequest,
    session: AsyncSession = Depends(get_session),
    svc: WeightService = Depends(get_weight_service),
) -> CategoryWeightItem:
    row = await svc.set_category_weight(session, category, body.weight)
    return CategoryWeightItem.model_validate(row)
