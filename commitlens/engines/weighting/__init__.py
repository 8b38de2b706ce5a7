"""Weighted-metric engine: resolver, aggregator, efficiency reporter."""

from commitlens.engines.weighting.aggregator import (
    aggregate,
    aggregate_breakdown,
    aggregate_facts,
    aggregate_precomputed,
    check_path_agreement,
    sort_records,
    top_n,
)
from commitlens.engines.weighting.models import (
    Breakdown,
    CommitFact,
    EfficiencyReport,
    GroupBy,
    MetricRecord,
    PrecomputedRow,
    SortKey,
    UnsupportedGroupBy,
)
from commitlens.engines.weighting.reporter import efficiency_tier, report
from commitlens.engines.weighting.resolver import lookup_from_map, memoized_lookup, resolve
from commitlens.engines.weighting.summary import PeriodSummary, summarize

__all__ = [
    "Breakdown",
    "CommitFact",
    "EfficiencyReport",
    "GroupBy",
    "MetricRecord",
    "PeriodSummary",
    "PrecomputedRow",
    "SortKey",
    "UnsupportedGroupBy",
    "aggregate",
    "aggregate_breakdown",
    "aggregate_facts",
    "aggregate_precomputed",
    "check_path_agreement",
    "efficiency_tier",
    "lookup_from_map",
    "memoized_lookup",
    "report",
    "resolve",
    "sort_records",
    "summarize",
    "top_n",
]
