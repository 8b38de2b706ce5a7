"""Commits router — weight and category edits."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.api.deps import get_fact_filters, get_session, get_weight_service
from commitlens.api.schemas.commit import CommitItem, UpdateCommitRequest
from commitlens.dao.commit_dao import FactFilters
from commitlens.services.weight_service import WeightService

router = APIRouter()


@router.get("/", response_model=list[CommitItem])
async def list_commits(
    limit: int = Query(50, ge=1, le=500),
    filters: FactFilters = Depends(get_fact_filters),
    session: AsyncSession = Depends(get_session),
    svc: WeightService = Depends(get_weight_service),
) -> list[CommitItem]:
    rows = await svc.list_commits(session, filters, limit=limit)
    return [CommitItem(**row) for row in rows]


@router.patch("/{commit_hash}", status_code=204)
@router.put("/{commit_hash}", status_code=204)
async def update_commit(
    commit_hash: str,
    body: UpdateCommitRequest,
    repository: str | None = Query(
        None, description="repository name; required when the hash exists in several"
    ),
    session: AsyncSession = Depends(get_session),
    svc: WeightService = Depends(get_weight_service),
) -> None:
    await svc.update_commit(
        session,
        commit_hash,
        fields_set=body.model_fields_set,
        weight=body.weight,
        category=body.category,
        repository=repository,
    )
