"""WeightService — validated commit and category weight edits."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.aggregate_dao import AggregateDAO
from commitlens.dao.category_weight_dao import CategoryWeightDAO
from commitlens.dao.commit_dao import CommitDAO, FactFilters
from commitlens.engines.weighting.resolver import check_weight
from commitlens.models.category_weight import CategoryWeight
from commitlens.models.commit import Commit
from commitlens.services import InvalidWeight, NotFoundError, ValidationError

log = structlog.get_logger("commitlens.weights")


class WeightService:
    """Stateless service for de-prioritization weight edits.

    Out-of-range weights are rejected with :class:`InvalidWeight`, never
    clamped. Every edit rebuilds the materialized aggregates in the same
    session, so the precomputed path never serves sums older than the
    weights it reports.
    """

    def __init__(
        self,
        commit_dao: CommitDAO,
        category_weight_dao: CategoryWeightDAO,
        aggregate_dao: AggregateDAO,
    ) -> None:
        self._commit_dao = commit_dao
        self._cw_dao = category_weight_dao
        self._agg_dao = aggregate_dao

    # ── private ────────────────────────────────────────────────────────────

    async def _get_commit(
        self, session: AsyncSession, commit_hash: str, repository: str | None
    ) -> Commit:
        commit = await self._commit_dao.get_by_hash(session, commit_hash, repository)
        if commit is None:
            raise NotFoundError(f"commit {commit_hash!r} not found")
        return commit

    async def _apply_weight(self, session: AsyncSession, commit: Commit, weight: int) -> Commit:
        weight = check_weight(weight, source=f"commit {commit.hash}")
        updated = await self._commit_dao.set_weight(session, commit, weight)
        log.info("weights.commit_updated", commit=commit.hash, weight=weight)
        return updated

    async def _apply_category(
        self, session: AsyncSession, commit: Commit, category: str | None
    ) -> Commit:
        category = category.strip() if category else None
        if category:
            await self._cw_dao.ensure(session, category)
        updated = await self._commit_dao.set_category(session, commit, category or None)
        log.info("weights.commit_recategorized", commit=commit.hash, category=category)
        return updated

    async def _rematerialize(self, session: AsyncSession) -> None:
        # both weights feed every dimension
        written = await self._agg_dao.refresh(session)
        log.info("aggregate.refreshed", trigger="weight_edit", **written)

    # ── commits ───────────────────────────────────────────────────────────

    async def set_commit_weight(
        self,
        session: AsyncSession,
        commit_hash: str,
        weight: int,
        repository: str | None = None,
    ) -> Commit:
        check_weight(weight, source=f"commit {commit_hash}")
        commit = await self._get_commit(session, commit_hash, repository)
        updated = await self._apply_weight(session, commit, weight)
        await self._rematerialize(session)
        return updated

    async def set_commit_category(
        self,
        session: AsyncSession,
        commit_hash: str,
        category: str | None,
        repository: str | None = None,
    ) -> Commit:
        """Retag a commit. A new category is created at full weight."""
        commit = await self._get_commit(session, commit_hash, repository)
        updated = await self._apply_category(session, commit, category)
        await self._rematerialize(session)
        return updated

    async def update_commit(
        self,
        session: AsyncSession,
        commit_hash: str,
        *,
        fields_set: set[str],
        weight: int | None = None,
        category: str | None = None,
        repository: str | None = None,
    ) -> Commit:
        """Apply a partial edit; only names in *fields_set* are touched.

        *repository* disambiguates a hash present in several repositories.
        """
        if "weight" in fields_set:
            if weight is None:
                raise InvalidWeight(f"commit {commit_hash}: weight must not be null")
            check_weight(weight, source=f"commit {commit_hash}")
        commit = await self._get_commit(session, commit_hash, repository)
        if "weight" in fields_set:
            commit = await self._apply_weight(session, commit, weight)
        if "category" in fields_set:
            commit = await self._apply_category(session, commit, category)
        if fields_set & {"weight", "category"}:
            await self._rematerialize(session)
        return commit

    async def list_commits(
        self, session: AsyncSession, filters: FactFilters | None = None, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Commits with their current weight and category, largest first."""
        return await self._commit_dao.list_commits(session, filters, limit=limit)

    # ── categories ────────────────────────────────────────────────────────

    async def set_category_weight(
        self, session: AsyncSession, category: str, weight: int
    ) -> CategoryWeight:
        if not category or not category.strip():
            raise ValidationError("category must not be empty")
        weight = check_weight(weight, source=f"category {category!r}")
        row = await self._cw_dao.set_weight(session, category.strip(), weight)
        log.info("weights.category_updated", category=row.category, weight=weight)
        await self._rematerialize(session)
        return row

    async def list_category_weights(self, session: AsyncSession) -> list[CategoryWeight]:
        return await self._cw_dao.list_all(session)
