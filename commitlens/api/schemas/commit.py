"""Commit list and weight edit schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class CommitItem(BaseModel):
    hash: str
    repository: str
    author_name: str
    commit_date: date
    subject: str | None = None
    category: str | None = None
    weight: int | None = None
    lines_added: int
    lines_deleted: int
    lines_changed: int


class UpdateCommitRequest(BaseModel):
    """Either field may be omitted. An explicit ``"category": null`` clears the tag."""

    weight: int | None = None
    category: str | None = None
