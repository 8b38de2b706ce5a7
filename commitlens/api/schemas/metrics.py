"""Weighted metrics response schemas."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel

from commitlens.api.schemas.commit import CommitItem
from commitlens.api.schemas.common import round_count, round_pct
from commitlens.engines.weighting import EfficiencyReport, MetricRecord, efficiency_tier
from commitlens.engines.weighting.models import DeprioritizedGroup, Disagreement


class MetricRecordResponse(BaseModel):
    group: str
    label: str
    total_commits: int
    effective_commits: float
    avg_weight: float | None
    weight_efficiency_pct: float | None
    efficiency_tier: str
    lines_added: int
    lines_deleted: int
    lines_changed: int
    weighted_lines_added: float
    weighted_lines_deleted: float
    weighted_lines_changed: float
    category_weight: int | None = None

    @classmethod
    def from_record(cls, record: MetricRecord) -> MetricRecordResponse:
        return cls(
            group=record.group,
            label=record.label,
            total_commits=record.total_commits,
            effective_commits=round_count(record.effective_commits),
            avg_weight=round_pct(record.avg_weight),
            weight_efficiency_pct=round_pct(record.weight_efficiency_pct),
            efficiency_tier=efficiency_tier(record.weight_efficiency_pct),
            lines_added=record.lines_added,
            lines_deleted=record.lines_deleted,
            lines_changed=record.lines_changed,
            weighted_lines_added=round_count(record.weighted_lines_added),
            weighted_lines_deleted=round_count(record.weighted_lines_deleted),
            weighted_lines_changed=round_count(record.weighted_lines_changed),
            category_weight=record.category_weight,
        )


class DeprioritizedGroupResponse(BaseModel):
    group: str
    label: str
    weight_efficiency_pct: float
    efficiency_tier: str
    total_commits: int
    effective_commits: float
    category_weight: int | None = None

    @classmethod
    def from_group(cls, group: DeprioritizedGroup) -> DeprioritizedGroupResponse:
        return cls(
            group=group.group,
            label=group.label,
            weight_efficiency_pct=round_pct(group.weight_efficiency_pct),
            efficiency_tier=efficiency_tier(group.weight_efficiency_pct),
            total_commits=group.total_commits,
            effective_commits=round_count(group.effective_commits),
            category_weight=group.category_weight,
        )


class EfficiencyResponse(BaseModel):
    overall_efficiency_pct: float | None
    total_commits: int
    effective_commits: float
    deprioritized: list[DeprioritizedGroupResponse]

    @classmethod
    def from_report(cls, rpt: EfficiencyReport) -> EfficiencyResponse:
        return cls(
            overall_efficiency_pct=round_pct(rpt.overall_efficiency_pct),
            total_commits=rpt.total_commits,
            effective_commits=round_count(rpt.effective_commits),
            deprioritized=[DeprioritizedGroupResponse.from_group(g) for g in rpt.deprioritized],
        )


class MetricsResponse(BaseModel):
    group_by: str
    source: str
    total_groups: int
    records: list[MetricRecordResponse]
    efficiency: EfficiencyResponse

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> MetricsResponse:
        return cls(
            group_by=result["group_by"],
            source=result["source"],
            total_groups=result["total_groups"],
            records=[MetricRecordResponse.from_record(r) for r in result["records"]],
            efficiency=EfficiencyResponse.from_report(result["efficiency"]),
        )


class DisagreementResponse(BaseModel):
    group: str
    raw_effective_commits: float
    precomputed_effective_commits: float
    delta: float

    @classmethod
    def from_disagreement(cls, d: Disagreement) -> DisagreementResponse:
        return cls(
            group=d.group,
            raw_effective_commits=d.raw_effective_commits,
            precomputed_effective_commits=d.precomputed_effective_commits,
            delta=d.delta,
        )


class ConsistencyResponse(BaseModel):
    group_by: str
    tolerance: float
    consistent: bool
    disagreements: list[DisagreementResponse]


class DateRangeResponse(BaseModel):
    min_date: date | None
    max_date: date | None


class PersonalStats(BaseModel):
    total_commits: int
    effective_commits: float
    weight_efficiency_pct: float | None
    avg_weight: float | None
    lines_added: int
    lines_deleted: int
    lines_changed: int
    weighted_lines_changed: float
    repositories_count: int
    active_days: int


class PersonalPerformanceResponse(BaseModel):
    author: str
    personal_stats: PersonalStats
    repository_breakdown: list[MetricRecordResponse]
    category_breakdown: list[MetricRecordResponse]
    monthly_trend: list[MetricRecordResponse]
    largest_commits: list[CommitItem]
    efficiency: EfficiencyResponse

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> PersonalPerformanceResponse:
        stats = dict(result["personal_stats"])
        stats["effective_commits"] = round_count(stats["effective_commits"])
        stats["weighted_lines_changed"] = round_count(stats["weighted_lines_changed"])
        stats["weight_efficiency_pct"] = round_pct(stats["weight_efficiency_pct"])
        stats["avg_weight"] = round_pct(stats["avg_weight"])
        return cls(
            author=result["author"],
            personal_stats=PersonalStats(**stats),
            repository_breakdown=[
                MetricRecordResponse.from_record(r) for r in result["repository_breakdown"]
            ],
            category_breakdown=[
                MetricRecordResponse.from_record(r) for r in result["category_breakdown"]
            ],
            monthly_trend=[MetricRecordResponse.from_record(r) for r in result["monthly_trend"]],
            largest_commits=[CommitItem(**c) for c in result["largest_commits"]],
            efficiency=EfficiencyResponse.from_report(result["efficiency"]),
        )
