"""Weight resolver — effective contribution of a single commit fact.

``combined_weight = commit.weight × category.weight / 100``. Nothing is
rounded here; rounding happens once, when results are presented.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from typing import Optional

from commitlens.engines.weighting.models import (
    FULL_WEIGHT,
    CommitFact,
    EffectiveContribution,
)
from commitlens.services import InvalidWeight

CategoryWeightLookup = Callable[[str], Optional[int]]


def check_weight(value: object, *, source: str) -> int:
    """Return *value* if it is an integer weight in [0, 100].

    Raises :class:`InvalidWeight` otherwise. Out-of-range values are never
    clamped: a corrupt weight must surface, not be masked.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidWeight(f"{source} weight must be an integer, got {value!r}")
    if not 0 <= value <= FULL_WEIGHT:
        raise InvalidWeight(f"{source} weight must be within [0, 100], got {value}")
    return value


def lookup_from_map(weights: Mapping[str, int]) -> CategoryWeightLookup:
    """Wrap a category → weight mapping as a lookup function."""
    return weights.get


def memoized_lookup(lookup: CategoryWeightLookup) -> CategoryWeightLookup:
    """Cache *lookup* for the lifetime of one request.

    Build a new one per request; category weights are edited by admins and a
    cache shared across requests would serve stale values.
    """
    return functools.lru_cache(maxsize=None)(lookup)


def category_weight_for(fact: CommitFact, lookup: CategoryWeightLookup) -> int:
    """Current weight of *fact*'s category; 100 when unset or unknown."""
    if not fact.category:
        return FULL_WEIGHT
    weight = lookup(fact.category)
    if weight is None:
        return FULL_WEIGHT
    return check_weight(weight, source=f"category {fact.category!r}")


def resolve(fact: CommitFact, lookup: CategoryWeightLookup) -> EffectiveContribution:
    """Compute *fact*'s effective contribution under the current category weights."""
    commit_weight = check_weight(fact.weight, source=f"commit {fact.hash or '?'}")
    category_weight = category_weight_for(fact, lookup)

    combined = commit_weight * category_weight / FULL_WEIGHT
    scale = combined / FULL_WEIGHT
    return EffectiveContribution(
        combined_weight=combined,
        effective_commit=scale,
        weighted_lines_added=fact.lines_added * scale,
        weighted_lines_deleted=fact.lines_deleted * scale,
        weighted_lines_changed=fact.lines_changed * scale,
    )
