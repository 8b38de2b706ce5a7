"""commits table — one row per ingested commit."""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from commitlens.core.database import Base, TimestampMixin


class Commit(TimestampMixin, Base):
    __tablename__ = "commits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    repository_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
    )
    hash: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[str] = mapped_column(Text, nullable=False)
    author_email: Mapped[Optional[str]] = mapped_column(Text)
    commit_date: Mapped[date] = mapped_column(Date, nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(Text)

    lines_added: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    lines_deleted: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )

    # editable by an authorized user; NULL reads as full weight
    weight: Mapped[Optional[int]] = mapped_column(SmallInteger, server_default=text("100"))
    category: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("repository_id", "hash"),
        CheckConstraint("lines_added >= 0 AND lines_deleted >= 0", name="non_negative_lines"),
        CheckConstraint("weight IS NULL OR (weight >= 0 AND weight <= 100)", name="weight_range"),
        Index("idx_commits_repository", "repository_id"),
        Index("idx_commits_date", "commit_date"),
        Index("idx_commits_category", "category"),
    )
