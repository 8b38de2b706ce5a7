"""Aggregator — fold commit facts or precomputed rows into per-group records.

Two interchangeable inputs produce the same :class:`MetricRecord` shape:

* raw facts are run through the weight resolver and summed per group;
* precomputed rows already hold group-level weighted sums and pass through,
  with efficiency derived from ``effective_commits / total_commits``.

For the same logical filter both paths must agree on ``effective_commits``
within :data:`PATH_TOLERANCE`; :func:`check_path_agreement` reports and logs
every group that does not.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from commitlens.engines.weighting.models import (
    FULL_WEIGHT,
    PATH_TOLERANCE,
    UNCATEGORIZED,
    Breakdown,
    CommitFact,
    Disagreement,
    GroupBy,
    MetricRecord,
    PrecomputedRow,
    SortKey,
    UnsupportedGroupBy,
)
from commitlens.engines.weighting.resolver import (
    CategoryWeightLookup,
    category_weight_for,
    resolve,
)

log = structlog.get_logger("commitlens.engine")


def _no_category_weights(_category: str) -> None:
    return None


def group_key(fact: CommitFact, group_by: GroupBy) -> tuple[str, str]:
    """Return ``(key, label)`` for *fact* under *group_by*."""
    if group_by is GroupBy.DAY:
        key = fact.commit_date.isoformat()
        return key, key
    if group_by is GroupBy.MONTH:
        key = f"{fact.commit_date.year:04d}-{fact.commit_date.month:02d}"
        return key, key
    if group_by is GroupBy.CONTRIBUTOR:
        return fact.author_key, fact.author_name
    if group_by is GroupBy.REPOSITORY:
        return fact.repository, fact.repository
    if group_by is GroupBy.CATEGORY:
        category = fact.category or UNCATEGORIZED
        return category, category
    raise AssertionError(f"unhandled group_by {group_by!r}")


@dataclass
class _Accumulator:
    label: str
    total_commits: int = 0
    effective_commits: float = 0.0
    lines_added: int = 0
    lines_deleted: int = 0
    weighted_lines_added: float = 0.0
    weighted_lines_deleted: float = 0.0
    weighted_lines_changed: float = 0.0
    category_weight: int | None = None

    def add(self, fact: CommitFact, lookup: CategoryWeightLookup) -> None:
        contribution = resolve(fact, lookup)
        self.total_commits += 1
        self.effective_commits += contribution.effective_commit
        self.lines_added += fact.lines_added
        self.lines_deleted += fact.lines_deleted
        self.weighted_lines_added += contribution.weighted_lines_added
        self.weighted_lines_deleted += contribution.weighted_lines_deleted
        self.weighted_lines_changed += contribution.weighted_lines_changed

    def to_record(self, group: str) -> MetricRecord:
        return MetricRecord(
            group=group,
            label=self.label,
            total_commits=self.total_commits,
            effective_commits=self.effective_commits,
            lines_added=self.lines_added,
            lines_deleted=self.lines_deleted,
            lines_changed=self.lines_added + self.lines_deleted,
            weighted_lines_added=self.weighted_lines_added,
            weighted_lines_deleted=self.weighted_lines_deleted,
            weighted_lines_changed=self.weighted_lines_changed,
            category_weight=self.category_weight,
        )


def aggregate_facts(
    facts: Sequence[CommitFact],
    group_by: GroupBy | str,
    lookup: CategoryWeightLookup | None = None,
) -> list[MetricRecord]:
    """Resolve and fold raw facts into one record per group (unsorted)."""
    group_by = GroupBy.parse(group_by)
    lookup = lookup or _no_category_weights
    groups: dict[str, _Accumulator] = {}

    for fact in facts:
        key, label = group_key(fact, group_by)
        acc = groups.get(key)
        if acc is None:
            acc = groups[key] = _Accumulator(label=label)
            if group_by is GroupBy.CATEGORY:
                acc.category_weight = category_weight_for(fact, lookup)
        elif label > acc.label:
            # MAX(author_name), matching the precomputed path
            acc.label = label
        acc.add(fact, lookup)

    return [acc.to_record(key) for key, acc in groups.items()]


def aggregate_precomputed(
    rows: Sequence[PrecomputedRow],
    group_by: GroupBy | str,
) -> list[MetricRecord]:
    """Pass materialized rows through as records (unsorted).

    :class:`MetricRecord` derives efficiency from the counts.
    """
    group_by = GroupBy.parse(group_by)
    records = []
    for row in rows:
        if row.group_by != group_by.value:
            raise ValueError(
                f"precomputed row for {row.group_by!r} passed to {group_by.value!r} aggregation"
            )
        category_weight = row.category_weight
        if group_by is GroupBy.CATEGORY and category_weight is None:
            category_weight = FULL_WEIGHT
        records.append(
            MetricRecord(
                group=row.group,
                label=row.label,
                total_commits=row.total_commits,
                effective_commits=row.effective_commits,
                lines_added=row.lines_added,
                lines_deleted=row.lines_deleted,
                lines_changed=row.lines_changed,
                weighted_lines_added=row.weighted_lines_added,
                weighted_lines_deleted=row.weighted_lines_deleted,
                weighted_lines_changed=row.weighted_lines_changed,
                category_weight=category_weight,
            )
        )
    return records


def _sort_value(record: MetricRecord, sort: SortKey) -> float | str:
    if sort is SortKey.GROUP:
        return record.group
    value = getattr(record, sort.value)
    return -1.0 if value is None else value


def sort_records(
    records: list[MetricRecord],
    sort: SortKey | str = SortKey.TOTAL_COMMITS,
    descending: bool = True,
) -> list[MetricRecord]:
    """Order by *sort*; ties always break on ascending group key."""
    sort = SortKey(sort)
    ordered = sorted(records, key=lambda r: r.group)
    if sort is SortKey.GROUP:
        return list(reversed(ordered)) if descending else ordered
    return sorted(ordered, key=lambda r: _sort_value(r, sort), reverse=descending)


def aggregate(
    source: Sequence[CommitFact] | Sequence[PrecomputedRow],
    group_by: GroupBy | str,
    lookup: CategoryWeightLookup | None = None,
    *,
    sort: SortKey | str = SortKey.TOTAL_COMMITS,
    descending: bool = True,
) -> list[MetricRecord]:
    """Aggregate raw facts or precomputed rows into sorted records.

    Raises :class:`UnsupportedGroupBy` for an unknown dimension, even when
    *source* is empty.
    """
    group_by = GroupBy.parse(group_by)
    items = list(source)
    if all(isinstance(item, CommitFact) for item in items):
        records = aggregate_facts(items, group_by, lookup)
    elif all(isinstance(item, PrecomputedRow) for item in items):
        records = aggregate_precomputed(items, group_by)
    else:
        raise TypeError("aggregate() expects only CommitFact or only PrecomputedRow items")
    return sort_records(records, sort, descending)


def top_n(records: Sequence[MetricRecord], limit: int | None) -> list[MetricRecord]:
    """Truncate an already-sorted list for display.

    Efficiency reports must be computed on the full list, never on this.
    """
    if limit is None:
        return list(records)
    return list(records[: max(limit, 0)])


def check_path_agreement(
    raw: Sequence[MetricRecord],
    precomputed: Sequence[MetricRecord],
    tolerance: float = PATH_TOLERANCE,
) -> list[Disagreement]:
    """Compare effective_commits per group between the two paths.

    A group missing on one side counts as zero there. Each disagreement is
    logged; neither path is preferred.
    """
    raw_by_group = {r.group: r.effective_commits for r in raw}
    pre_by_group = {r.group: r.effective_commits for r in precomputed}

    disagreements = []
    for group in sorted(raw_by_group.keys() | pre_by_group.keys()):
        d = Disagreement(
            group=group,
            raw_effective_commits=raw_by_group.get(group, 0.0),
            precomputed_effective_commits=pre_by_group.get(group, 0.0),
        )
        if d.delta > tolerance:
            log.warning(
                "aggregate.path_disagreement",
                group=group,
                raw=d.raw_effective_commits,
                precomputed=d.precomputed_effective_commits,
                delta=d.delta,
            )
            disagreements.append(d)
    return disagreements


# Secondary dimensions read left to right in time order.
_CHRONOLOGICAL = frozenset({GroupBy.DAY, GroupBy.MONTH})


def aggregate_breakdown(
    facts: Sequence[CommitFact],
    group_by: GroupBy | str,
    within: GroupBy | str,
    lookup: CategoryWeightLookup | None = None,
    *,
    sort: SortKey | str = SortKey.TOTAL_COMMITS,
    descending: bool = True,
) -> list[Breakdown]:
    """Group *facts* by *group_by*, then regroup each group's facts by *within*.

    Outer groups are ordered by *sort*. Items are in time order when *within*
    is a day or month dimension and by descending ``total_commits`` otherwise.
    Every fact counts exactly once at each level, so the items of a group sum
    to its record.
    """
    group_by = GroupBy.parse(group_by)
    within = GroupBy.parse(within)
    if group_by is within:
        raise UnsupportedGroupBy(f"cannot break {group_by.value!r} down by itself")

    buckets: dict[str, list[CommitFact]] = {}
    for fact in facts:
        buckets.setdefault(group_key(fact, group_by)[0], []).append(fact)

    if within in _CHRONOLOGICAL:
        item_sort, item_descending = SortKey.GROUP, False
    else:
        item_sort, item_descending = SortKey.TOTAL_COMMITS, True

    records = aggregate_facts(facts, group_by, lookup)
    return [
        Breakdown(
            record=record,
            items=aggregate(
                buckets[record.group],
                within,
                lookup,
                sort=item_sort,
                descending=item_descending,
            ),
        )
        for record in sort_records(records, sort, descending)
    ]
