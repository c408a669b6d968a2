"""Range helpers shared by the graduated and volume models."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from .properties import PriceRange


def ranges_are_contiguous(ranges: Sequence[PriceRange]) -> bool:
    """Structural check for tiered ranges.

    Rules: at least one range; the first starts at 0; every bounded range has
    to_value > from_value; each range starts exactly where the previous one
    ends; at most one open-ended range and it is the last one.
    """
    if not ranges:
        return False
    if any(r.malformed or r.from_value is None for r in ranges):
        return False
    if ranges[0].from_value != 0:
        return False

    previous: Optional[PriceRange] = None
    for idx, r in enumerate(ranges):
        is_last = idx == len(ranges) - 1
        if r.to_value is None:
            if not is_last:
                return False
        elif r.to_value <= r.from_value:
            return False
        if previous is not None and r.from_value != previous.to_value:
            return False
        previous = r
    return True


def range_amounts_valid(ranges: Sequence[PriceRange]) -> bool:
    for r in ranges:
        if r.per_unit_amount is None or r.per_unit_amount < 0:
            return False
        if r.flat_amount is None or r.flat_amount < 0:
            return False
    return True


def range_label(r: PriceRange) -> str:
    upper = "∞" if r.to_value is None else _fmt(r.to_value)
    return f"{_fmt(r.from_value)}-{upper}"


def _fmt(v: Optional[Decimal]) -> str:
    if v is None:
        return "?"
    return format(v.normalize(), "f") if v == v.to_integral_value() else str(v)
