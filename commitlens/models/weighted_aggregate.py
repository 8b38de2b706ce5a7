"""weighted_aggregates table — materialized per-group weighted sums.

Rows are rebuilt by ``AggregateDAO.refresh``, periodically and after every
weight edit, and lag newly ingested commits until the next refresh.
``weight_efficiency_pct`` is stored for inspection only; readers recompute
it from ``effective_commits`` / ``total_commits``.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Double,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from commitlens.core.database import Base


class WeightedAggregate(Base):
    __tablename__ = "weighted_aggregates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    group_by: Mapped[str] = mapped_column(Text, nullable=False)
    group_key: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[str] = mapped_column(Text, nullable=False)

    total_commits: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_commits: Mapped[float] = mapped_column(Double, nullable=False)

    lines_added: Mapped[int] = mapped_column(BigInteger, nullable=False)
    lines_deleted: Mapped[int] = mapped_column(BigInteger, nullable=False)
    lines_changed: Mapped[int] = mapped_column(BigInteger, nullable=False)
    weighted_lines_added: Mapped[float] = mapped_column(Double, nullable=False)
    weighted_lines_deleted: Mapped[float] = mapped_column(Double, nullable=False)
    weighted_lines_changed: Mapped[float] = mapped_column(Double, nullable=False)

    weight_efficiency_pct: Mapped[Optional[float]] = mapped_column(Double)
    refreshed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("group_by", "group_key"),
        Index("idx_weighted_aggregates_group_by", "group_by"),
    )
