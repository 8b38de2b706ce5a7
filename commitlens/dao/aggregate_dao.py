"""AggregateDAO — materialized weighted aggregates (weighted_aggregates table).

Weighted sums are computed in SQL as integer products
``Σ weight × category_weight`` and scaled by 1/10000 in exactly one place,
:func:`scale_product`, when rows are materialized.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    BigInteger,
    ColumnElement,
    Select,
    cast,
    delete,
    extract,
    func,
    insert,
    literal_column,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.base import BaseDAO
from commitlens.dao.commit_dao import contributor_key
from commitlens.engines.weighting.models import (
    FULL_WEIGHT,
    UNCATEGORIZED,
    GroupBy,
    PrecomputedRow,
    efficiency_pct,
)
from commitlens.models.category_weight import CategoryWeight
from commitlens.models.commit import Commit
from commitlens.models.repository import Repository
from commitlens.models.weighted_aggregate import WeightedAggregate

_WEIGHT_SCALE = FULL_WEIGHT * FULL_WEIGHT


def weight_product() -> ColumnElement[int]:
    """Per-commit ``weight × category_weight`` as an integer, unset weights at 100.

    Needs ``commits`` outer-joined to ``category_weights``.
    """
    commit_weight = func.coalesce(Commit.weight, FULL_WEIGHT)
    category_weight = func.coalesce(CategoryWeight.weight, FULL_WEIGHT)
    return cast(commit_weight, BigInteger) * category_weight


def scale_product(product_sum: Any) -> float:
    """Turn a summed ``weight × category_weight`` product into a fraction."""
    return float(product_sum or 0) / _WEIGHT_SCALE


class AggregateDAO(BaseDAO[WeightedAggregate]):
    model = WeightedAggregate

    # ── private ────────────────────────────────────────────────────────────

    @staticmethod
    def _group_columns(group_by: GroupBy) -> tuple[list[Any], list[Any]]:
        """Return ``(select columns, group-by expressions)`` for a dimension.

        Key expressions carry no bound parameters: GROUP BY repeats them, and
        PostgreSQL only matches the two when they are textually identical.
        """
        if group_by is GroupBy.DAY:
            day = Commit.commit_date.label("day")
            return [day], [day]
        if group_by is GroupBy.MONTH:
            year = extract("year", Commit.commit_date).label("year")
            month = extract("month", Commit.commit_date).label("month")
            return [year, month], [year, month]
        if group_by is GroupBy.CONTRIBUTOR:
            key = contributor_key(Commit.author_name).label("group_key")
            return [key, func.max(Commit.author_name).label("label")], [key]
        if group_by is GroupBy.REPOSITORY:
            key = Repository.name.label("group_key")
            return [key], [key]
        if group_by is GroupBy.CATEGORY:
            key = func.coalesce(
                func.nullif(Commit.category, literal_column("''")),
                literal_column(f"'{UNCATEGORIZED}'"),
            ).label("group_key")
            return [key], [key]
        raise AssertionError(f"unhandled group_by {group_by!r}")

    def _materialize_query(self, group_by: GroupBy) -> Select:
        product = weight_product()
        added = cast(Commit.lines_added, BigInteger)
        deleted = cast(Commit.lines_deleted, BigInteger)

        columns, group_exprs = self._group_columns(group_by)
        return (
            select(
                *columns,
                func.count().label("total_commits"),
                func.sum(product).label("weight_product"),
                func.coalesce(func.sum(added), 0).label("lines_added"),
                func.coalesce(func.sum(deleted), 0).label("lines_deleted"),
                func.sum(added * product).label("added_product"),
                func.sum(deleted * product).label("deleted_product"),
            )
            .select_from(Commit)
            .join(Repository, Repository.id == Commit.repository_id)
            .outerjoin(CategoryWeight, CategoryWeight.category == Commit.category)
            .group_by(*group_exprs)
        )

    @staticmethod
    def _row_values(group_by: GroupBy, row: Any) -> dict[str, Any]:
        if group_by is GroupBy.DAY:
            key = label = row.day.isoformat()
        elif group_by is GroupBy.MONTH:
            key = f"{int(row.year):04d}-{int(row.month):02d}"
            label = key
        else:
            key = row.group_key
            label = getattr(row, "label", None) or key

        total = int(row.total_commits)
        effective = scale_product(row.weight_product)
        weighted_added = scale_product(row.added_product)
        weighted_deleted = scale_product(row.deleted_product)
        lines_added = int(row.lines_added)
        lines_deleted = int(row.lines_deleted)
        return {
            "group_by": group_by.value,
            "group_key": key,
            "label": label,
            "total_commits": total,
            "effective_commits": effective,
            "lines_added": lines_added,
            "lines_deleted": lines_deleted,
            "lines_changed": lines_added + lines_deleted,
            "weighted_lines_added": weighted_added,
            "weighted_lines_deleted": weighted_deleted,
            "weighted_lines_changed": weighted_added + weighted_deleted,
            "weight_efficiency_pct": efficiency_pct(effective, total),
        }

    # ── read ──────────────────────────────────────────────────────────────

    async def fetch_precomputed(
        self, session: AsyncSession, group_by: GroupBy | str
    ) -> list[PrecomputedRow]:
        """Materialized rows for *group_by*.

        Category rows carry the category's current weight. Weight edits
        rematerialize inside the edit transaction, so rows lag only commits
        ingested since the last refresh.
        """
        group_by = GroupBy.parse(group_by)
        stmt = select(WeightedAggregate, CategoryWeight.weight).where(
            WeightedAggregate.group_by == group_by.value
        )
        stmt = stmt.outerjoin(
            CategoryWeight,
            (CategoryWeight.category == WeightedAggregate.group_key)
            & (WeightedAggregate.group_by == GroupBy.CATEGORY.value),
        )
        result = await session.execute(stmt)
        rows = []
        for agg, category_weight in result:
            if group_by is GroupBy.CATEGORY and category_weight is None:
                category_weight = FULL_WEIGHT
            rows.append(
                PrecomputedRow(
                    group_by=agg.group_by,
                    group=agg.group_key,
                    label=agg.label,
                    total_commits=agg.total_commits,
                    effective_commits=agg.effective_commits,
                    lines_added=agg.lines_added,
                    lines_deleted=agg.lines_deleted,
                    lines_changed=agg.lines_changed,
                    weighted_lines_added=agg.weighted_lines_added,
                    weighted_lines_deleted=agg.weighted_lines_deleted,
                    weighted_lines_changed=agg.weighted_lines_changed,
                    category_weight=category_weight,
                )
            )
        return rows

    # ── write ─────────────────────────────────────────────────────────────

    async def refresh(
        self, session: AsyncSession, group_by: GroupBy | str | None = None
    ) -> dict[str, int]:
        """Rebuild materialized rows from current commits and category weights.

        Refreshes every dimension when *group_by* is None. Returns the number
        of rows written per dimension.
        """
        dimensions = list(GroupBy) if group_by is None else [GroupBy.parse(group_by)]
        written: dict[str, int] = {}
        for dimension in dimensions:
            result = await session.execute(self._materialize_query(dimension))
            values = [self._row_values(dimension, row) for row in result]
            await session.execute(
                delete(WeightedAggregate).where(WeightedAggregate.group_by == dimension.value)
            )
            if values:
                await session.execute(insert(WeightedAggregate), values)
            written[dimension.value] = len(values)
        return written
