"""SQLAlchemy ORM models — one file per table."""

from commitlens.models.category_weight import CategoryWeight
from commitlens.models.commit import Commit
from commitlens.models.repository import Repository
from commitlens.models.weighted_aggregate import WeightedAggregate

__all__ = [
    "Repository",
    "Commit",
    "CategoryWeight",
    "WeightedAggregate",
]
