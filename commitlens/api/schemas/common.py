"""Shared presentation helpers for response schemas."""

from __future__ import annotations

# Engine values are unrounded; responses round once, here.
COUNT_DIGITS = 2
PCT_DIGITS = 1

_BELOW_FULL = 100.0 - 10**-PCT_DIGITS


def round_count(value: float) -> float:
    return round(value, COUNT_DIGITS)


def round_pct(value: float | None) -> float | None:
    """Round a percentage; anything short of 100 stays visibly below it."""
    if value is None:
        return None
    rounded = round(value, PCT_DIGITS)
    if value < 100.0 and rounded >= 100.0:
        return _BELOW_FULL
    return rounded


def round_optional(value: float | None) -> float | None:
    return None if value is None else round_count(value)
