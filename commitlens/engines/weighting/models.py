"""Typed records for the weighted-metric engine."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

FULL_WEIGHT = 100
UNCATEGORIZED = "UNCATEGORIZED"

# Raw and precomputed paths must agree on effective_commits within this.
PATH_TOLERANCE = 0.05


class UnsupportedGroupBy(ValueError):
    """Grouping dimension not implemented by either aggregation path."""


class GroupBy(str, enum.Enum):
    DAY = "day"
    MONTH = "month"
    CONTRIBUTOR = "contributor"
    REPOSITORY = "repository"
    CATEGORY = "category"

    @classmethod
    def parse(cls, value: GroupBy | str) -> GroupBy:
        """Return the member for *value*; raise :class:`UnsupportedGroupBy` otherwise."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedGroupBy(f"unsupported group_by: {value!r}") from None


class SortKey(str, enum.Enum):
    TOTAL_COMMITS = "total_commits"
    EFFECTIVE_COMMITS = "effective_commits"
    WEIGHTED_LINES_CHANGED = "weighted_lines_changed"
    LINES_CHANGED = "lines_changed"
    WEIGHT_EFFICIENCY = "weight_efficiency_pct"
    GROUP = "group"


def _field(row: Any, name: str, default: Any = ...) -> Any:
    """Read *name* from a mapping, a SQLAlchemy ``Row`` or a plain object."""
    if isinstance(row, Mapping):
        source: Any = row
    elif hasattr(row, "_mapping"):
        source = row._mapping
    else:
        if hasattr(row, name):
            return getattr(row, name)
        if default is ...:
            raise ValueError(f"fact row is missing field {name!r}")
        return default
    if name in source:
        return source[name]
    if default is ...:
        raise ValueError(f"fact row is missing field {name!r}")
    return default


def _line_count(row: Any, name: str) -> int:
    value = _field(row, name)
    if value is None:
        return 0
    value = int(value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class CommitFact:
    """One committed change, as read from the fact store."""

    repository: str
    author_name: str
    commit_date: date
    lines_added: int = 0
    lines_deleted: int = 0
    weight: int = FULL_WEIGHT
    category: str | None = None
    author_email: str | None = None
    hash: str | None = None
    # contributor key as normalized by the store; see CommitDAO
    normalized_author: str | None = None

    @property
    def lines_changed(self) -> int:
        return self.lines_added + self.lines_deleted

    @property
    def author_key(self) -> str:
        """Author identity used for contributor grouping.

        Facts read from the store carry the key the database computed, so the
        raw and precomputed paths group contributors identically. Facts built
        in memory fall back to a whitespace-trimmed, lower-cased name.
        """
        if self.normalized_author is not None:
            return self.normalized_author
        return self.author_name.strip().lower()

    @classmethod
    def from_row(cls, row: Any) -> CommitFact:
        """Coerce a query result row into a typed fact.

        Unset weights read as full weight and blank categories as unset.
        Out-of-range weights are kept as-is so the resolver can surface them.
        """
        commit_date = _field(row, "commit_date")
        if isinstance(commit_date, datetime):
            commit_date = commit_date.date()
        elif isinstance(commit_date, str):
            commit_date = date.fromisoformat(commit_date[:10])
        elif not isinstance(commit_date, date):
            raise ValueError(f"commit_date has unexpected type {type(commit_date).__name__}")

        weight = _field(row, "weight", None)
        category = _field(row, "category", None)
        return cls(
            repository=str(_field(row, "repository")),
            author_name=str(_field(row, "author_name")),
            commit_date=commit_date,
            lines_added=_line_count(row, "lines_added"),
            lines_deleted=_line_count(row, "lines_deleted"),
            weight=FULL_WEIGHT if weight is None else int(weight),
            category=category or None,
            author_email=_field(row, "author_email", None),
            hash=_field(row, "hash", None),
            normalized_author=_field(row, "author_key", None),
        )


@dataclass(frozen=True)
class CategoryWeightEntry:
    """Current weight of one category."""

    category: str
    weight: int = FULL_WEIGHT

    @classmethod
    def from_row(cls, row: Any) -> CategoryWeightEntry:
        weight = _field(row, "weight", None)
        return cls(
            category=str(_field(row, "category")),
            weight=FULL_WEIGHT if weight is None else int(weight),
        )


@dataclass(frozen=True)
class EffectiveContribution:
    """A commit's contribution after both weights are applied. Never stored."""

    combined_weight: float
    effective_commit: float
    weighted_lines_added: float
    weighted_lines_deleted: float
    weighted_lines_changed: float


def efficiency_pct(effective_commits: float, total_commits: int) -> float | None:
    """``100 × effective / total``, or None for an empty group."""
    if total_commits <= 0:
        return None
    return 100.0 * effective_commits / total_commits


@dataclass
class MetricRecord:
    """Aggregate metrics for one group (day, month, contributor, repository or category)."""

    group: str
    label: str
    total_commits: int
    effective_commits: float
    lines_added: int = 0
    lines_deleted: int = 0
    lines_changed: int = 0
    weighted_lines_added: float = 0.0
    weighted_lines_deleted: float = 0.0
    weighted_lines_changed: float = 0.0
    category_weight: int | None = None

    @property
    def avg_weight(self) -> float | None:
        return efficiency_pct(self.effective_commits, self.total_commits)

    @property
    def weight_efficiency_pct(self) -> float | None:
        # same quantity as avg_weight, exposed under the name the UI uses
        return self.avg_weight

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "label": self.label,
            "total_commits": self.total_commits,
            "effective_commits": self.effective_commits,
            "avg_weight": self.avg_weight,
            "weight_efficiency_pct": self.weight_efficiency_pct,
            "lines_added": self.lines_added,
            "lines_deleted": self.lines_deleted,
            "lines_changed": self.lines_changed,
            "weighted_lines_added": self.weighted_lines_added,
            "weighted_lines_deleted": self.weighted_lines_deleted,
            "weighted_lines_changed": self.weighted_lines_changed,
            "category_weight": self.category_weight,
        }


@dataclass(frozen=True)
class PrecomputedRow:
    """One materialized aggregate row, as read back from the store."""

    group_by: str
    group: str
    label: str
    total_commits: int
    effective_commits: float
    lines_added: int = 0
    lines_deleted: int = 0
    lines_changed: int = 0
    weighted_lines_added: float = 0.0
    weighted_lines_deleted: float = 0.0
    weighted_lines_changed: float = 0.0
    category_weight: int | None = None


@dataclass(frozen=True)
class Disagreement:
    """A group whose effective_commits differ between the two paths."""

    group: str
    raw_effective_commits: float
    precomputed_effective_commits: float

    @property
    def delta(self) -> float:
        return abs(self.raw_effective_commits - self.precomputed_effective_commits)


@dataclass(frozen=True)
class DeprioritizedGroup:
    group: str
    label: str
    weight_efficiency_pct: float
    total_commits: int
    effective_commits: float
    category_weight: int | None = None


@dataclass
class EfficiencyReport:
    """Overall efficiency plus every group below 100%."""

    overall_efficiency_pct: float | None
    total_commits: int
    effective_commits: float
    deprioritized: list[DeprioritizedGroup] = field(default_factory=list)


@dataclass
class Breakdown:
    """One group's record plus the same facts regrouped along a second dimension."""

    record: MetricRecord
    items: list[MetricRecord] = field(default_factory=list)
