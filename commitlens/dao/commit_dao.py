"""CommitDAO — commit fact reads and per-commit weight edits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import ColumnElement, Select, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from commitlens.dao.base import BaseDAO
from commitlens.engines.weighting.models import CommitFact
from commitlens.models.commit import Commit
from commitlens.models.repository import Repository
from commitlens.services import AmbiguousCommit, InvalidFilter, NotFoundError

ALL_REPOSITORIES = "all"


def contributor_key(name: Any) -> ColumnElement[str]:
    """Normalize an author name into a contributor key, in SQL.

    The one definition of contributor identity: fact reads, the author filter
    and materialized aggregates all use it, so every path folds whitespace and
    case the same way the database does.
    """
    return func.lower(func.trim(name))


@dataclass(frozen=True)
class FactFilters:
    """Optional filters narrowing the commit fact set.

    ``repository="all"`` is the same as no repository filter.
    """

    repository: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    author: str | None = None

    @property
    def repository_name(self) -> str | None:
        if not self.repository or self.repository == ALL_REPOSITORIES:
            return None
        return self.repository

    @property
    def author_term(self) -> str | None:
        """The author filter as given, or None when blank."""
        if self.author is None or not self.author.strip():
            return None
        return self.author

    @property
    def is_default(self) -> bool:
        """True when nothing narrows the default window (precomputed path allowed)."""
        return (
            self.repository_name is None
            and self.date_from is None
            and self.date_to is None
            and self.author_term is None
        )

    def validate(self) -> FactFilters:
        """Raise :class:`InvalidFilter` for an inverted date range."""
        if self.date_from is not None and self.date_to is not None:
            if self.date_from > self.date_to:
                raise InvalidFilter(
                    f"date_from {self.date_from.isoformat()} is after "
                    f"date_to {self.date_to.isoformat()}"
                )
        return self


class CommitDAO(BaseDAO[Commit]):
    model = Commit

    # ── private ────────────────────────────────────────────────────────────

    @staticmethod
    def _fact_query() -> Select:
        return select(
            Commit.hash,
            Repository.name.label("repository"),
            Commit.author_name,
            contributor_key(Commit.author_name).label("author_key"),
            Commit.author_email,
            Commit.commit_date,
            Commit.lines_added,
            Commit.lines_deleted,
            Commit.weight,
            Commit.category,
        ).join(Repository, Repository.id == Commit.repository_id)

    @staticmethod
    def _apply_filters(query: Select, filters: FactFilters) -> Select:
        """Apply FactFilters to a query already joined to repositories."""
        if filters.repository_name is not None:
            query = query.where(Repository.name == filters.repository_name)
        if filters.date_from is not None:
            query = query.where(Commit.commit_date >= filters.date_from)
        if filters.date_to is not None:
            query = query.where(Commit.commit_date <= filters.date_to)
        if filters.author_term is not None:
            term = contributor_key(literal(filters.author_term))
            query = query.where(
                or_(
                    contributor_key(Commit.author_name) == term,
                    contributor_key(Commit.author_email) == term,
                )
            )
        return query

    # ── read ──────────────────────────────────────────────────────────────

    async def fetch_facts(
        self,
        session: AsyncSession,
        filters: FactFilters | None = None,
    ) -> list[CommitFact]:
        """All commit facts matching *filters*, coerced to typed records.

        An unknown repository name yields an empty list, not an error.
        Raises :class:`InvalidFilter` for an inverted date range.
        """
        filters = (filters or FactFilters()).validate()
        query = self._apply_filters(self._fact_query(), filters)
        result = await session.execute(query)
        return [CommitFact.from_row(row) for row in result]

    async def list_commits(
        self,
        session: AsyncSession,
        filters: FactFilters | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Largest commits first (by lines changed), with their weight and category."""
        filters = (filters or FactFilters()).validate()
        lines_changed = (Commit.lines_added + Commit.lines_deleted).label("lines_changed")
        query = self._apply_filters(
            self._fact_query().add_columns(Commit.subject, lines_changed), filters
        )
        query = query.order_by(lines_changed.desc(), Commit.hash).limit(limit)
        result = await session.execute(query)
        return [dict(row._mapping) for row in result]

    async def date_range(self, session: AsyncSession) -> tuple[date | None, date | None]:
        """Earliest and latest commit dates in the store."""
        stmt = select(func.min(Commit.commit_date), func.max(Commit.commit_date))
        result = await session.execute(stmt)
        row = result.one()
        return row[0], row[1]

    async def get_by_hash(
        self,
        session: AsyncSession,
        commit_hash: str,
        repository: str | None = None,
    ) -> Commit | None:
        """The commit with *commit_hash*, optionally within one repository.

        Hashes are unique per repository only. Raises :class:`AmbiguousCommit`
        when no repository is named and the hash exists in more than one.
        """
        stmt = select(Commit).where(Commit.hash == commit_hash)
        if repository and repository != ALL_REPOSITORIES:
            stmt = stmt.join(Repository, Repository.id == Commit.repository_id).where(
                Repository.name == repository
            )
        result = await session.execute(stmt.limit(2))
        matches = list(result.scalars().all())
        if len(matches) > 1:
            raise AmbiguousCommit(
                f"commit {commit_hash!r} exists in several repositories; name one"
            )
        return matches[0] if matches else None

    # ── write ─────────────────────────────────────────────────────────────

    async def _update_commit(self, session: AsyncSession, commit: Commit, **values: Any) -> Commit:
        updated = await self.update(session, commit.id, **values)
        if updated is None:
            raise NotFoundError(f"commit {commit.hash!r} no longer exists")
        return updated

    async def set_weight(self, session: AsyncSession, commit: Commit, weight: int) -> Commit:
        return await self._update_commit(session, commit, weight=weight)

    async def set_category(
        self, session: AsyncSession, commit: Commit, category: str | None
    ) -> Commit:
        return await self._update_commit(session, commit, category=category)
