"""MetricsService — weighted dashboard metrics for one request.

Chooses between the precomputed and the raw path, truncates display lists and
builds efficiency reports from the full, untruncated record set.

Category weights are read once per request and commit facts right after, in
the same session. A weight edit landing between the two reads can make two
metrics in one response disagree slightly; isolation is whatever the store's
read transaction provides.
"""

from __future__ import annotations

import dataclasses
from datetime import date, timedelta
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.aggregate_dao import AggregateDAO
from commitlens.dao.category_weight_dao import CategoryWeightDAO
from commitlens.dao.commit_dao import CommitDAO, FactFilters
from commitlens.dao.repository_dao import RepositoryDAO
from commitlens.engines.weighting import (
    EfficiencyReport,
    GroupBy,
    MetricRecord,
    SortKey,
    aggregate,
    aggregate_breakdown,
    check_path_agreement,
    lookup_from_map,
    memoized_lookup,
    report,
    summarize,
    top_n,
)
from commitlens.engines.weighting.models import CommitFact, Disagreement
from commitlens.engines.weighting.resolver import CategoryWeightLookup
from commitlens.services import InvalidFilter, ValidationError

log = structlog.get_logger("commitlens.metrics")

SOURCE_PRECOMPUTED = "precomputed"
SOURCE_RAW = "raw"

LARGEST_COMMITS_LIMIT = 10
TOP_CONTRIBUTORS_LIMIT = 10
DAILY_ACTIVITY_DAYS = 30


class MetricsService:
    """Stateless service for weighted metrics."""

    def __init__(
        self,
        commit_dao: CommitDAO,
        category_weight_dao: CategoryWeightDAO,
        aggregate_dao: AggregateDAO,
        repository_dao: RepositoryDAO,
        display_limit: int | None = None,
    ) -> None:
        self._commit_dao = commit_dao
        self._cw_dao = category_weight_dao
        self._agg_dao = aggregate_dao
        self._repo_dao = repository_dao
        self._display_limit = display_limit

    # ── private ────────────────────────────────────────────────────────────

    async def _facts(
        self, session: AsyncSession, filters: FactFilters
    ) -> tuple[list[CommitFact], CategoryWeightLookup]:
        weights = await self._cw_dao.get_weight_map(session)
        facts = await self._commit_dao.fetch_facts(session, filters)
        return facts, memoized_lookup(lookup_from_map(weights))

    async def _records(
        self,
        session: AsyncSession,
        group_by: GroupBy,
        filters: FactFilters,
        sort: SortKey | str,
        descending: bool,
    ) -> tuple[list[MetricRecord], str]:
        """Full, sorted record set and the path that produced it."""
        if filters.is_default:
            rows = await self._agg_dao.fetch_precomputed(session, group_by)
            if rows:
                records = aggregate(rows, group_by, sort=sort, descending=descending)
                return records, SOURCE_PRECOMPUTED
            log.debug("metrics.precomputed_empty", group_by=group_by.value)

        facts, lookup = await self._facts(session, filters)
        records = aggregate(facts, group_by, lookup, sort=sort, descending=descending)
        return records, SOURCE_RAW

    # ── reads ─────────────────────────────────────────────────────────────

    async def get_metrics(
        self,
        session: AsyncSession,
        group_by: GroupBy | str,
        filters: FactFilters | None = None,
        *,
        sort: SortKey | str = SortKey.TOTAL_COMMITS,
        descending: bool = True,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Return display records plus an efficiency report over all groups.

        ``records`` is truncated to *limit* (or the configured display limit);
        ``efficiency`` always covers every group in the filtered set.
        """
        group_by = GroupBy.parse(group_by)
        filters = (filters or FactFilters()).validate()
        records, source = await self._records(session, group_by, filters, sort, descending)

        display_limit = limit if limit is not None else self._display_limit
        log.info(
            "metrics.served",
            group_by=group_by.value,
            source=source,
            groups=len(records),
        )
        return {
            "group_by": group_by.value,
            "source": source,
            "total_groups": len(records),
            "records": top_n(records, display_limit),
            "efficiency": report(records),
        }

    async def get_efficiency(
        self,
        session: AsyncSession,
        group_by: GroupBy | str,
        filters: FactFilters | None = None,
    ) -> EfficiencyReport:
        """Efficiency report over the full filtered set for *group_by*."""
        group_by = GroupBy.parse(group_by)
        filters = (filters or FactFilters()).validate()
        records, _source = await self._records(
            session, group_by, filters, SortKey.TOTAL_COMMITS, True
        )
        return report(records)

    async def verify_paths(
        self, session: AsyncSession, group_by: GroupBy | str
    ) -> list[Disagreement]:
        """Compare precomputed and raw effective_commits for the default window."""
        group_by = GroupBy.parse(group_by)
        rows = await self._agg_dao.fetch_precomputed(session, group_by)
        facts, lookup = await self._facts(session, FactFilters())
        disagreements = check_path_agreement(
            aggregate(facts, group_by, lookup),
            aggregate(rows, group_by),
        )
        log.info(
            "metrics.paths_verified",
            group_by=group_by.value,
            disagreements=len(disagreements),
        )
        return disagreements

    async def get_breakdown(
        self,
        session: AsyncSession,
        group_by: GroupBy | str,
        within: GroupBy | str,
        filters: FactFilters | None = None,
        *,
        sort: SortKey | str = SortKey.TOTAL_COMMITS,
        descending: bool = True,
    ) -> dict[str, Any]:
        """Two-dimension view, e.g. category trends (month × category).

        Always served from raw facts; the materialized table holds one
        dimension per row. ``efficiency`` covers the outer groups.
        """
        group_by = GroupBy.parse(group_by)
        within = GroupBy.parse(within)
        filters = (filters or FactFilters()).validate()
        facts, lookup = await self._facts(session, filters)
        groups = aggregate_breakdown(
            facts, group_by, within, lookup, sort=sort, descending=descending
        )
        log.info(
            "metrics.breakdown_served",
            group_by=group_by.value,
            within=within.value,
            groups=len(groups),
        )
        return {
            "group_by": group_by.value,
            "within": within.value,
            "groups": groups,
            "efficiency": report(g.record for g in groups),
        }

    async def get_daily_activity(
        self,
        session: AsyncSession,
        filters: FactFilters | None = None,
        days: int = DAILY_ACTIVITY_DAYS,
        today: date | None = None,
    ) -> dict[str, Any]:
        """Per-day activity split by repository, newest day first.

        Without an explicit date window the last *days* days up to *today*
        are shown.
        """
        if days < 1:
            raise InvalidFilter(f"days must be at least 1, got {days}")
        filters = filters or FactFilters()
        if filters.date_from is None and filters.date_to is None:
            today = today or date.today()
            filters = dataclasses.replace(
                filters, date_from=today - timedelta(days=days - 1), date_to=today
            )
        return await self.get_breakdown(
            session,
            GroupBy.DAY,
            GroupBy.REPOSITORY,
            filters,
            sort=SortKey.GROUP,
            descending=True,
        )

    async def get_summary(
        self, session: AsyncSession, filters: FactFilters | None = None
    ) -> dict[str, Any]:
        """Overall stats, largest commits and top contributors for the filtered set."""
        filters = (filters or FactFilters()).validate()
        facts, lookup = await self._facts(session, filters)
        contributors = aggregate(facts, GroupBy.CONTRIBUTOR, lookup)
        largest = await self._commit_dao.list_commits(
            session, filters, limit=LARGEST_COMMITS_LIMIT
        )
        return {
            "overall_stats": summarize(facts, lookup),
            "largest_commits": largest,
            "top_contributors": top_n(contributors, TOP_CONTRIBUTORS_LIMIT),
            "efficiency": report(aggregate(facts, GroupBy.REPOSITORY, lookup)),
        }

    async def get_before_after(
        self,
        session: AsyncSession,
        repository: str,
        before: tuple[date, date],
        after: tuple[date, date],
    ) -> dict[str, Any]:
        """Summaries of two date windows for one repository, or ``"all"``.

        Each window is inclusive and must not be inverted.
        """
        windows = {}
        for name, (start, end) in (("before", before), ("after", after)):
            filters = FactFilters(repository=repository, date_from=start, date_to=end)
            try:
                filters.validate()
            except InvalidFilter as exc:
                raise InvalidFilter(f"{name} window: {exc}") from None
            windows[name] = filters

        weights = await self._cw_dao.get_weight_map(session)
        lookup = memoized_lookup(lookup_from_map(weights))
        result: dict[str, Any] = {"repository": repository}
        for name, filters in windows.items():
            facts = await self._commit_dao.fetch_facts(session, filters)
            result[name] = summarize(facts, lookup)
        return result

    async def list_repositories(self, session: AsyncSession) -> list[dict[str, Any]]:
        return await self._repo_dao.list_with_stats(session)

    async def get_date_range(self, session: AsyncSession) -> dict[str, Any]:
        min_date, max_date = await self._commit_dao.date_range(session)
        return {"min_date": min_date, "max_date": max_date}

    async def get_personal_performance(
        self,
        session: AsyncSession,
        author: str,
        filters: FactFilters | None = None,
    ) -> dict[str, Any]:
        """Weighted stats and breakdowns for one contributor.

        *author* matches the normalized author name or the email address.
        """
        if not author or not author.strip():
            raise ValidationError("author is required")
        filters = dataclasses.replace(filters or FactFilters(), author=author).validate()

        facts, lookup = await self._facts(session, filters)
        by_repository = aggregate(facts, GroupBy.REPOSITORY, lookup)
        by_category = aggregate(facts, GroupBy.CATEGORY, lookup)
        by_month = aggregate(
            facts, GroupBy.MONTH, lookup, sort=SortKey.GROUP, descending=False
        )
        largest = await self._commit_dao.list_commits(
            session, filters, limit=LARGEST_COMMITS_LIMIT
        )

        summary = summarize(facts, lookup)
        personal_stats = {
            "total_commits": summary.total_commits,
            "effective_commits": summary.effective_commits,
            "weight_efficiency_pct": summary.weight_efficiency_pct,
            "avg_weight": summary.weight_efficiency_pct,
            "lines_added": summary.lines_added,
            "lines_deleted": summary.lines_deleted,
            "lines_changed": summary.lines_changed,
            "weighted_lines_changed": summary.weighted_lines_changed,
            "repositories_count": summary.repositories,
            "active_days": summary.active_days,
        }
        return {
            "author": author.strip(),
            "personal_stats": personal_stats,
            "repository_breakdown": by_repository,
            "category_breakdown": by_category,
            "monthly_trend": by_month,
            "largest_commits": largest,
            "efficiency": report(by_repository),
        }
