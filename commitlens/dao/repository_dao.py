"""RepositoryDAO — repositories with headline commit statistics."""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.aggregate_dao import scale_product, weight_product
from commitlens.dao.base import BaseDAO
from commitlens.dao.commit_dao import contributor_key
from commitlens.engines.weighting.models import efficiency_pct
from commitlens.models.category_weight import CategoryWeight
from commitlens.models.commit import Commit
from commitlens.models.repository import Repository


class RepositoryDAO(BaseDAO[Repository]):
    model = Repository

    async def list_with_stats(self, session: AsyncSession) -> list[dict[str, Any]]:
        """Every repository by name, including ones without commits.

        ``unique_authors`` counts contributor keys, matching contributor grouping.
        """
        # the outer join yields one all-NULL commit row for an empty repository
        product = case((Commit.id.is_not(None), weight_product()))
        stmt = (
            select(
                Repository.id,
                Repository.name,
                Repository.description,
                func.count(Commit.id).label("total_commits"),
                func.sum(product).label("weight_product"),
                func.max(Commit.commit_date).label("latest_commit"),
                func.count(func.distinct(contributor_key(Commit.author_name))).label(
                    "unique_authors"
                ),
            )
            .select_from(Repository)
            .outerjoin(Commit, Commit.repository_id == Repository.id)
            .outerjoin(CategoryWeight, CategoryWeight.category == Commit.category)
            .group_by(Repository.id, Repository.name, Repository.description)
            .order_by(Repository.name)
        )
        result = await session.execute(stmt)

        repositories = []
        for row in result:
            total = int(row.total_commits)
            effective = scale_product(row.weight_product)
            repositories.append(
                {
                    "id": row.id,
                    "name": row.name,
                    "description": row.description,
                    "total_commits": total,
                    "effective_commits": effective,
                    "weight_efficiency_pct": efficiency_pct(effective, total),
                    "latest_commit": row.latest_commit,
                    "unique_authors": int(row.unique_authors),
                }
            )
        return repositories
