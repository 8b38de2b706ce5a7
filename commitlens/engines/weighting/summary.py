"""Period summary — headline totals and per-commit / per-month averages.

Used for the dashboard summary, each side of a before/after comparison and a
contributor's personal stats. Averages are None when their denominator is 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from commitlens.engines.weighting.models import CommitFact, efficiency_pct
from commitlens.engines.weighting.resolver import CategoryWeightLookup, resolve


def _ratio(numerator: float, denominator: int) -> float | None:
    if denominator <= 0:
        return None
    return numerator / denominator


@dataclass
class PeriodSummary:
    total_commits: int = 0
    effective_commits: float = 0.0
    lines_added: int = 0
    lines_deleted: int = 0
    weighted_lines_changed: float = 0.0
    contributors: int = 0
    repositories: int = 0
    active_days: int = 0
    active_months: int = 0
    # contributors summed over active months, for the per-month average
    contributor_months: int = 0

    @property
    def lines_changed(self) -> int:
        return self.lines_added + self.lines_deleted

    @property
    def weight_efficiency_pct(self) -> float | None:
        return efficiency_pct(self.effective_commits, self.total_commits)

    @property
    def avg_lines_changed_per_commit(self) -> float | None:
        return _ratio(self.lines_changed, self.total_commits)

    @property
    def avg_weighted_lines_per_commit(self) -> float | None:
        return _ratio(self.weighted_lines_changed, self.total_commits)

    @property
    def avg_commits_per_month(self) -> float | None:
        return _ratio(self.total_commits, self.active_months)

    @property
    def avg_effective_commits_per_month(self) -> float | None:
        return _ratio(self.effective_commits, self.active_months)

    @property
    def avg_contributors_per_month(self) -> float | None:
        return _ratio(self.contributor_months, self.active_months)

    @property
    def avg_commits_per_contributor(self) -> float | None:
        return _ratio(self.total_commits, self.contributors)


def summarize(
    facts: Iterable[CommitFact], lookup: CategoryWeightLookup | None = None
) -> PeriodSummary:
    """Fold *facts* into a :class:`PeriodSummary` under the current weights."""
    lookup = lookup or (lambda _category: None)
    summary = PeriodSummary()
    contributors: set[str] = set()
    repositories: set[str] = set()
    days = set()
    month_contributors: dict[tuple[int, int], set[str]] = {}

    for fact in facts:
        contribution = resolve(fact, lookup)
        summary.total_commits += 1
        summary.effective_commits += contribution.effective_commit
        summary.lines_added += fact.lines_added
        summary.lines_deleted += fact.lines_deleted
        summary.weighted_lines_changed += contribution.weighted_lines_changed

        contributors.add(fact.author_key)
        repositories.add(fact.repository)
        days.add(fact.commit_date)
        month = (fact.commit_date.year, fact.commit_date.month)
        month_contributors.setdefault(month, set()).add(fact.author_key)

    summary.contributors = len(contributors)
    summary.repositories = len(repositories)
    summary.active_days = len(days)
    summary.active_months = len(month_contributors)
    summary.contributor_months = sum(len(keys) for keys in month_contributors.values())
    return summary
