"""Tests for MetricsService."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from commitlens.dao.aggregate_dao import AggregateDAO
from commitlens.dao.category_weight_dao import CategoryWeightDAO
from commitlens.dao.commit_dao import CommitDAO, FactFilters
from commitlens.dao.repository_dao import RepositoryDAO
from commitlens.engines.weighting import CommitFact, PrecomputedRow, UnsupportedGroupBy
from commitlens.services import InvalidFilter, ValidationError
from commitlens.services.metrics_service import MetricsService

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_service(
    display_limit: int | None = 15,
) -> tuple[MetricsService, CommitDAO, CategoryWeightDAO, AggregateDAO]:
    commit_dao = CommitDAO()
    cw_dao = CategoryWeightDAO()
    agg_dao = AggregateDAO()
    commit_dao.fetch_facts = AsyncMock(return_value=[])
    commit_dao.list_commits = AsyncMock(return_value=[])
    cw_dao.get_weight_map = AsyncMock(return_value={})
    agg_dao.fetch_precomputed = AsyncMock(return_value=[])
    repo_dao = RepositoryDAO()
    repo_dao.list_with_stats = AsyncMock(return_value=[])
    service = MetricsService(commit_dao, cw_dao, agg_dao, repo_dao, display_limit=display_limit)
    return service, commit_dao, cw_dao, agg_dao


def _fact(**overrides) -> CommitFact:
    defaults = {
        "repository": "core",
        "author_name": "Alice",
        "commit_date": date(2024, 1, 10),
        "lines_added": 10,
        "lines_deleted": 2,
    }
    defaults.update(overrides)
    return CommitFact(**defaults)


def _category_row(group: str, total: int, effective: float, weight: int = 100) -> PrecomputedRow:
    return PrecomputedRow(
        group_by="category",
        group=group,
        label=group,
        total_commits=total,
        effective_commits=effective,
        category_weight=weight,
    )


# ---------------------------------------------------------------------------
# get_metrics
# ---------------------------------------------------------------------------


class TestGetMetrics:
    async def test_default_filters_use_precomputed(self):
        service, commit_dao, _cw, agg_dao = _make_service()
        agg_dao.fetch_precomputed.return_value = [_category_row("docs", 4, 2.0, 50)]

        session = AsyncMock()
        result = await service.get_metrics(session, "category")

        assert result["source"] == "precomputed"
        assert result["group_by"] == "category"
        [rec] = result["records"]
        assert rec.weight_efficiency_pct == pytest.approx(50.0)
        agg_dao.fetch_precomputed.assert_awaited_once()
        commit_dao.fetch_facts.assert_not_awaited()

    async def test_empty_precomputed_falls_back_to_raw(self):
        service, commit_dao, _cw, _agg = _make_service()
        commit_dao.fetch_facts.return_value = [_fact(), _fact(weight=0)]

        result = await service.get_metrics(AsyncMock(), "repository")

        assert result["source"] == "raw"
        [rec] = result["records"]
        assert rec.total_commits == 2
        assert rec.effective_commits == 1.0

    async def test_filtered_request_uses_raw(self):
        service, commit_dao, cw_dao, agg_dao = _make_service()
        cw_dao.get_weight_map.return_value = {"docs": 20}
        commit_dao.fetch_facts.return_value = [_fact(category="docs")]
        filters = FactFilters(repository="core")

        session = AsyncMock()
        result = await service.get_metrics(session, "category", filters)

        assert result["source"] == "raw"
        assert result["records"][0].effective_commits == pytest.approx(0.2)
        agg_dao.fetch_precomputed.assert_not_awaited()
        commit_dao.fetch_facts.assert_awaited_once_with(session, filters)

    async def test_all_repositories_counts_as_default(self):
        service, _commit, _cw, agg_dao = _make_service()
        agg_dao.fetch_precomputed.return_value = [_category_row("docs", 1, 1.0)]
        result = await service.get_metrics(AsyncMock(), "category", FactFilters(repository="all"))
        assert result["source"] == "precomputed"

    async def test_display_cutoff_does_not_hide_deprioritized(self):
        service, _commit, _cw, agg_dao = _make_service(display_limit=15)
        rows = [_category_row(f"cat{i:02d}", 2000, 2000.0) for i in range(15)]
        rows.append(_category_row("generated", 1000, 300.0, weight=30))
        agg_dao.fetch_precomputed.return_value = rows

        result = await service.get_metrics(AsyncMock(), "category")

        assert result["total_groups"] == 16
        assert len(result["records"]) == 15
        assert "generated" not in {r.group for r in result["records"]}
        [deprioritized] = result["efficiency"].deprioritized
        assert deprioritized.group == "generated"
        assert deprioritized.weight_efficiency_pct == pytest.approx(30.0)

    async def test_explicit_limit_and_sort(self):
        service, commit_dao, _cw, _agg = _make_service()
        commit_dao.fetch_facts.return_value = [
            _fact(repository="a", lines_added=1),
            _fact(repository="b", lines_added=500),
            _fact(repository="c", lines_added=50),
        ]
        result = await service.get_metrics(
            AsyncMock(),
            "repository",
            FactFilters(author="alice"),
            sort="lines_changed",
            limit=2,
        )
        assert [r.group for r in result["records"]] == ["b", "c"]
        assert result["efficiency"].total_commits == 3

    async def test_inverted_date_range(self):
        service, commit_dao, _cw, agg_dao = _make_service()
        filters = FactFilters(date_from=date(2024, 6, 1), date_to=date(2024, 1, 1))
        with pytest.raises(InvalidFilter):
            await service.get_metrics(AsyncMock(), "month", filters)
        commit_dao.fetch_facts.assert_not_awaited()
        agg_dao.fetch_precomputed.assert_not_awaited()

    async def test_unknown_group_by(self):
        service, *_ = _make_service()
        with pytest.raises(UnsupportedGroupBy):
            await service.get_metrics(AsyncMock(), "week")


# ---------------------------------------------------------------------------
# get_efficiency / verify_paths / get_date_range
# ---------------------------------------------------------------------------


class TestEfficiency:
    async def test_report_over_full_set(self):
        service, commit_dao, _cw, _agg = _make_service(display_limit=1)
        commit_dao.fetch_facts.return_value = [
            _fact(repository="a"),
            _fact(repository="a"),
            _fact(repository="b", weight=25),
        ]
        rpt = await service.get_efficiency(AsyncMock(), "repository", FactFilters(repository="all"))
        assert rpt.total_commits == 3
        assert rpt.overall_efficiency_pct == pytest.approx(75.0)
        assert [g.group for g in rpt.deprioritized] == ["b"]


class TestVerifyPaths:
    async def test_no_disagreement(self):
        service, commit_dao, cw_dao, agg_dao = _make_service()
        cw_dao.get_weight_map.return_value = {"docs": 50}
        commit_dao.fetch_facts.return_value = [_fact(category="docs"), _fact(category="docs")]
        agg_dao.fetch_precomputed.return_value = [_category_row("docs", 2, 1.0, 50)]
        assert await service.verify_paths(AsyncMock(), "category") == []

    async def test_stale_precomputed_reported(self):
        service, commit_dao, cw_dao, agg_dao = _make_service()
        cw_dao.get_weight_map.return_value = {"docs": 10}
        commit_dao.fetch_facts.return_value = [_fact(category="docs")]
        agg_dao.fetch_precomputed.return_value = [_category_row("docs", 1, 1.0, 10)]
        [d] = await service.verify_paths(AsyncMock(), "category")
        assert d.group == "docs"
        assert d.delta == pytest.approx(0.9)


class TestDateRange:
    async def test_date_range(self):
        service, commit_dao, _cw, _agg = _make_service()
        commit_dao.date_range = AsyncMock(return_value=(date(2023, 1, 1), date(2024, 6, 30)))
        result = await service.get_date_range(AsyncMock())
        assert result == {"min_date": date(2023, 1, 1), "max_date": date(2024, 6, 30)}


# ---------------------------------------------------------------------------
# get_personal_performance
# ---------------------------------------------------------------------------


class TestPersonalPerformance:
    async def test_blank_author_rejected(self):
        service, *_ = _make_service()
        with pytest.raises(ValidationError):
            await service.get_personal_performance(AsyncMock(), "   ")

    async def test_breakdowns(self):
        service, commit_dao, cw_dao, _agg = _make_service()
        cw_dao.get_weight_map.return_value = {"docs": 50}
        commit_dao.fetch_facts.return_value = [
            _fact(repository="core", commit_date=date(2024, 2, 1), category="docs"),
            _fact(repository="core", commit_date=date(2024, 1, 5)),
            _fact(repository="web", commit_date=date(2024, 1, 5), weight=50),
        ]
        commit_dao.list_commits.return_value = [{"hash": "abc"}]

        session = AsyncMock()
        result = await service.get_personal_performance(session, " Alice ")

        assert result["author"] == "Alice"
        stats = result["personal_stats"]
        assert stats["total_commits"] == 3
        assert stats["effective_commits"] == pytest.approx(2.0)
        assert stats["weight_efficiency_pct"] == pytest.approx(200 / 3)
        assert stats["avg_weight"] == stats["weight_efficiency_pct"]
        assert stats["lines_changed"] == 36
        assert stats["repositories_count"] == 2
        assert stats["active_days"] == 2
        assert [r.group for r in result["monthly_trend"]] == ["2024-01", "2024-02"]
        assert {r.group for r in result["category_breakdown"]} == {"docs", "UNCATEGORIZED"}
        assert result["largest_commits"] == [{"hash": "abc"}]

        filters = commit_dao.fetch_facts.await_args.args[1]
        assert filters.author == " Alice "
        assert filters.author_term == " Alice "


# ---------------------------------------------------------------------------
# dashboard reports
# ---------------------------------------------------------------------------


class TestBreakdown:
    async def test_category_trends(self):
        service, commit_dao, cw_dao, agg_dao = _make_service()
        cw_dao.get_weight_map.return_value = {"docs": 50}
        commit_dao.fetch_facts.return_value = [
            _fact(commit_date=date(2024, 1, 5), category="docs"),
            _fact(commit_date=date(2024, 1, 6)),
            _fact(commit_date=date(2024, 2, 1), category="docs"),
        ]
        result = await service.get_breakdown(
            AsyncMock(), "month", "category", sort="group"
        )
        assert (result["group_by"], result["within"]) == ("month", "category")
        assert [g.record.group for g in result["groups"]] == ["2024-02", "2024-01"]
        january = {i.group: i for i in result["groups"][1].items}
        assert january["docs"].effective_commits == pytest.approx(0.5)
        assert result["efficiency"].total_commits == 3
        agg_dao.fetch_precomputed.assert_not_awaited()

    async def test_inverted_range(self):
        service, commit_dao, *_ = _make_service()
        filters = FactFilters(date_from=date(2024, 2, 1), date_to=date(2024, 1, 1))
        with pytest.raises(InvalidFilter):
            await service.get_breakdown(AsyncMock(), "repository", "month", filters)
        commit_dao.fetch_facts.assert_not_awaited()

    async def test_same_dimension(self):
        service, *_ = _make_service()
        with pytest.raises(UnsupportedGroupBy):
            await service.get_breakdown(AsyncMock(), "month", "month")


class TestDailyActivity:
    async def test_default_window(self):
        service, commit_dao, *_ = _make_service()
        commit_dao.fetch_facts.return_value = [
            _fact(commit_date=date(2024, 3, 9)),
            _fact(commit_date=date(2024, 3, 10), repository="web"),
        ]
        result = await service.get_daily_activity(AsyncMock(), days=7, today=date(2024, 3, 10))

        filters = commit_dao.fetch_facts.await_args.args[1]
        assert (filters.date_from, filters.date_to) == (date(2024, 3, 4), date(2024, 3, 10))
        assert result["group_by"] == "day"
        assert [g.record.group for g in result["groups"]] == ["2024-03-10", "2024-03-09"]
        assert [i.group for i in result["groups"][0].items] == ["web"]

    async def test_explicit_window_kept(self):
        service, commit_dao, *_ = _make_service()
        filters = FactFilters(date_from=date(2023, 1, 1))
        await service.get_daily_activity(AsyncMock(), filters, today=date(2024, 3, 10))
        assert commit_dao.fetch_facts.await_args.args[1] == filters

    async def test_days_must_be_positive(self):
        service, commit_dao, *_ = _make_service()
        with pytest.raises(InvalidFilter):
            await service.get_daily_activity(AsyncMock(), days=0)
        commit_dao.fetch_facts.assert_not_awaited()


class TestSummary:
    async def test_summary(self):
        service, commit_dao, cw_dao, _agg = _make_service()
        cw_dao.get_weight_map.return_value = {"generated": 0}
        commit_dao.fetch_facts.return_value = [
            _fact(),
            _fact(author_name="Bob", repository="web", category="generated"),
        ]
        commit_dao.list_commits.return_value = [{"hash": "abc"}]

        result = await service.get_summary(AsyncMock(), FactFilters(repository="all"))

        stats = result["overall_stats"]
        assert stats.total_commits == 2
        assert stats.effective_commits == pytest.approx(1.0)
        assert stats.contributors == 2
        assert [r.group for r in result["top_contributors"]] == ["alice", "bob"]
        assert result["largest_commits"] == [{"hash": "abc"}]
        [deprioritized] = result["efficiency"].deprioritized
        assert deprioritized.group == "web"


class TestBeforeAfter:
    async def test_two_windows(self):
        service, commit_dao, cw_dao, _agg = _make_service()
        commit_dao.fetch_facts.side_effect = [
            [_fact(weight=50)],
            [_fact(), _fact()],
        ]
        result = await service.get_before_after(
            AsyncMock(),
            "core",
            before=(date(2024, 1, 1), date(2024, 1, 31)),
            after=(date(2024, 2, 1), date(2024, 2, 29)),
        )
        assert result["repository"] == "core"
        assert result["before"].weight_efficiency_pct == pytest.approx(50.0)
        assert result["after"].total_commits == 2
        cw_dao.get_weight_map.assert_awaited_once()
        windows = [call.args[1] for call in commit_dao.fetch_facts.await_args_list]
        assert windows[0] == FactFilters("core", date(2024, 1, 1), date(2024, 1, 31))
        assert windows[1] == FactFilters("core", date(2024, 2, 1), date(2024, 2, 29))

    async def test_inverted_window_named(self):
        service, commit_dao, *_ = _make_service()
        with pytest.raises(InvalidFilter, match="after window"):
            await service.get_before_after(
                AsyncMock(),
                "core",
                before=(date(2024, 1, 1), date(2024, 1, 31)),
                after=(date(2024, 3, 1), date(2024, 2, 1)),
            )
        commit_dao.fetch_facts.assert_not_awaited()


class TestRepositories:
    async def test_delegates_to_store(self):
        service, *_ = _make_service()
        service._repo_dao.list_with_stats.return_value = [{"name": "core"}]
        session = AsyncMock()
        assert await service.list_repositories(session) == [{"name": "core"}]
        service._repo_dao.list_with_stats.assert_awaited_once_with(session)
