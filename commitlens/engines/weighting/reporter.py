"""Efficiency reporter — human-facing percentages derived from aggregate records."""

from __future__ import annotations

import math
from collections.abc import Iterable

from commitlens.engines.weighting.models import (
    DeprioritizedGroup,
    EfficiencyReport,
    MetricRecord,
    efficiency_pct,
)

# Badge tiers shown next to de-prioritized groups.
TIER_PARTIAL = 75.0
TIER_REDUCED = 50.0


def efficiency_tier(pct: float | None) -> str:
    """Classify an efficiency percentage: full / partial / reduced / low."""
    if pct is None or pct >= 100.0:
        return "full"
    if pct >= TIER_PARTIAL:
        return "partial"
    if pct >= TIER_REDUCED:
        return "reduced"
    return "low"


def report(records: Iterable[MetricRecord]) -> EfficiencyReport:
    """Build an efficiency report over *records*.

    *records* must be the full filtered set: a list truncated for a top-N
    display would drop low-volume, low-weight groups from ``deprioritized``.

    ``overall_efficiency_pct`` is volume-weighted (total effective over total
    raw commits), so it is the same for any partition of the same facts.
    """
    records = list(records)
    total_commits = sum(r.total_commits for r in records)
    effective_commits = math.fsum(r.effective_commits for r in records)

    deprioritized = []
    for r in records:
        pct = r.weight_efficiency_pct
        if pct is None or pct >= 100.0:
            continue
        deprioritized.append(
            DeprioritizedGroup(
                group=r.group,
                label=r.label,
                weight_efficiency_pct=pct,
                total_commits=r.total_commits,
                effective_commits=r.effective_commits,
                category_weight=r.category_weight,
            )
        )
    # impact first
    deprioritized.sort(key=lambda g: (-g.total_commits, g.group))

    return EfficiencyReport(
        overall_efficiency_pct=efficiency_pct(effective_commits, total_commits),
        total_commits=total_commits,
        effective_commits=effective_commits,
        deprioritized=deprioritized,
    )
