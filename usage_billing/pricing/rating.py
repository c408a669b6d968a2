"""Fee rating engine: one UsageAggregate + one Charge -> one Fee.

Every breakdown component is rounded to minor units on its own (half-up) and
the fee amount is the sum of the components, so the breakdown always adds up
to the fee exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..aggregation.aggregator import GroupingValues, UsageAggregate
from ..charge_models.registry import ChargeModelRegistry
from ..charge_models.types import FeeComponent
from ..charge_models.validation import select_model
from .cache import build_cache_key, get_cached_fee, set_cached_fee

_LOGGER = logging.getLogger(__name__)


class RatingError(AssertionError):
    """A rating invariant was broken; the input should never have reached the engine."""


@dataclass(frozen=True)
class Fee:
    charge_id: str
    charge_version: int
    amount_cents: int
    currency: str
    units: Decimal
    events_count: int
    grouping_values: GroupingValues
    breakdown: Tuple[FeeComponent, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "charge_id": self.charge_id,
            "charge_version": self.charge_version,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "units": str(self.units),
            "events_count": self.events_count,
            "grouping_values": list(self.grouping_values),
            "breakdown": [
                {"label": c.label, "units": str(c.units), "amount_cents": c.amount_cents, "details": dict(c.details)}
                for c in self.breakdown
            ],
        }


def rate(
    charge,
    aggregate: UsageAggregate,
    *,
    registry: Optional[ChargeModelRegistry] = None,
    use_cache: bool = True,
) -> Fee:
    """Price ``aggregate`` with ``charge``.

    Raises RatingError when the charge does not validate, the quantity is
    negative or a component comes out negative. The memo is only consulted
    with the default registry.
    """
    use_cache = use_cache and registry is None
    key = build_cache_key(charge, aggregate)
    if use_cache:
        cached = get_cached_fee(key)
        if cached is not None:
            _LOGGER.debug("Rating cache hit for charge %s v%s", charge.id, charge.version)
            return cached

    if not charge.currency:
        raise RatingError(f"Charge {charge.id} has no currency")
    model = select_model(charge.model, charge.properties, registry)
    validation = model.validate(charge.properties)
    if not validation.valid:
        raise RatingError(f"Charge {charge.id} has invalid properties: {validation.flattened()}")
    if aggregate.quantity < 0:
        raise RatingError(f"Negative quantity {aggregate.quantity} for charge {charge.id}")

    components = model.compute(
        charge.properties,
        aggregate.quantity,
        charge.currency,
        events_count=aggregate.events_count,
    )
    for c in components:
        if c.amount_cents < 0:
            raise RatingError(f"Negative component '{c.label}' ({c.amount_cents}) for charge {charge.id}")

    fee = Fee(
        charge_id=charge.id,
        charge_version=charge.version,
        amount_cents=sum(c.amount_cents for c in components),
        currency=charge.currency,
        units=aggregate.quantity,
        events_count=aggregate.events_count,
        grouping_values=aggregate.grouping_values,
        breakdown=tuple(components),
    )
    if use_cache:
        set_cached_fee(key, fee)
    return fee


def rate_aggregates(
    charge,
    aggregates: Mapping[GroupingValues, UsageAggregate] | Iterable[UsageAggregate],
    *,
    registry: Optional[ChargeModelRegistry] = None,
    use_cache: bool = True,
) -> List[Fee]:
    """Rate every partition of an aggregation run, ordered by grouping values."""
    items = list(aggregates.values()) if isinstance(aggregates, Mapping) else list(aggregates)
    items.sort(key=lambda a: a.grouping_values)
    return [rate(charge, a, registry=registry, use_cache=use_cache) for a in items]


def total_amount_cents(fees: Iterable[Fee]) -> int:
    return sum(f.amount_cents for f in fees)


__all__ = ["Fee", "RatingError", "rate", "rate_aggregates", "total_amount_cents"]
