"""Dashboard report schemas — breakdowns, summaries and repository listing."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel

from commitlens.api.schemas.commit import CommitItem
from commitlens.api.schemas.common import round_count, round_optional, round_pct
from commitlens.api.schemas.metrics import EfficiencyResponse, MetricRecordResponse
from commitlens.engines.weighting import Breakdown, PeriodSummary


class BreakdownGroupResponse(MetricRecordResponse):
    items: list[MetricRecordResponse]

    @classmethod
    def from_breakdown(cls, breakdown: Breakdown) -> BreakdownGroupResponse:
        record = MetricRecordResponse.from_record(breakdown.record)
        return cls(
            **record.model_dump(),
            items=[MetricRecordResponse.from_record(r) for r in breakdown.items],
        )


class BreakdownResponse(BaseModel):
    group_by: str
    within: str
    groups: list[BreakdownGroupResponse]
    efficiency: EfficiencyResponse

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> BreakdownResponse:
        return cls(
            group_by=result["group_by"],
            within=result["within"],
            groups=[BreakdownGroupResponse.from_breakdown(g) for g in result["groups"]],
            efficiency=EfficiencyResponse.from_report(result["efficiency"]),
        )


class PeriodSummaryResponse(BaseModel):
    total_commits: int
    effective_commits: float
    weight_efficiency_pct: float | None
    lines_added: int
    lines_deleted: int
    lines_changed: int
    weighted_lines_changed: float
    contributors: int
    repositories: int
    active_days: int
    active_months: int
    avg_lines_changed_per_commit: float | None
    avg_weighted_lines_per_commit: float | None
    avg_commits_per_month: float | None
    avg_effective_commits_per_month: float | None
    avg_contributors_per_month: float | None
    avg_commits_per_contributor: float | None

    @classmethod
    def from_summary(cls, s: PeriodSummary) -> PeriodSummaryResponse:
        return cls(
            total_commits=s.total_commits,
            effective_commits=round_count(s.effective_commits),
            weight_efficiency_pct=round_pct(s.weight_efficiency_pct),
            lines_added=s.lines_added,
            lines_deleted=s.lines_deleted,
            lines_changed=s.lines_changed,
            weighted_lines_changed=round_count(s.weighted_lines_changed),
            contributors=s.contributors,
            repositories=s.repositories,
            active_days=s.active_days,
            active_months=s.active_months,
            avg_lines_changed_per_commit=round_optional(s.avg_lines_changed_per_commit),
            avg_weighted_lines_per_commit=round_optional(s.avg_weighted_lines_per_commit),
            avg_commits_per_month=round_optional(s.avg_commits_per_month),
            avg_effective_commits_per_month=round_optional(s.avg_effective_commits_per_month),
            avg_contributors_per_month=round_optional(s.avg_contributors_per_month),
            avg_commits_per_contributor=round_optional(s.avg_commits_per_contributor),
        )


class SummaryResponse(BaseModel):
    overall_stats: PeriodSummaryResponse
    largest_commits: list[CommitItem]
    top_contributors: list[MetricRecordResponse]
    efficiency: EfficiencyResponse

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> SummaryResponse:
        return cls(
            overall_stats=PeriodSummaryResponse.from_summary(result["overall_stats"]),
            largest_commits=[CommitItem(**c) for c in result["largest_commits"]],
            top_contributors=[
                MetricRecordResponse.from_record(r) for r in result["top_contributors"]
            ],
            efficiency=EfficiencyResponse.from_report(result["efficiency"]),
        )


class BeforeAfterResponse(BaseModel):
    repository: str
    before: PeriodSummaryResponse
    after: PeriodSummaryResponse

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> BeforeAfterResponse:
        return cls(
            repository=result["repository"],
            before=PeriodSummaryResponse.from_summary(result["before"]),
            after=PeriodSummaryResponse.from_summary(result["after"]),
        )


class RepositoryItem(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    total_commits: int
    effective_commits: float
    weight_efficiency_pct: float | None
    latest_commit: date | None
    unique_authors: int

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RepositoryItem:
        return cls(
            **{
                **row,
                "effective_commits": round_count(row["effective_commits"]),
                "weight_efficiency_pct": round_pct(row["weight_efficiency_pct"]),
            }
        )
