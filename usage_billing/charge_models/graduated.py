from __future__ import annotations

from decimal import Decimal
from typing import List

from .base import BaseChargeModel
from .properties import GraduatedProperties
from .ranges import range_amounts_valid, range_label, ranges_are_contiguous
from .types import ChargeModelKind, ErrorCollector, FeeComponent


class GraduatedChargeModel(BaseChargeModel):
    """Cumulative tiers: each range prices only the units that fall inside it.

    The last range absorbs any overflow, whether or not it is open-ended.
    A range's flat amount is due as soon as at least one unit reaches it.
    """

    kind = ChargeModelKind.GRADUATED
    properties_type = GraduatedProperties

    def check(self, properties: GraduatedProperties, errors: ErrorCollector) -> None:
        if not ranges_are_contiguous(properties.ranges):
            errors.add("ranges", "invalid_graduated_ranges")
        if not range_amounts_valid(properties.ranges):
            errors.add("amount", "invalid_amount")

    def compute(
        self,
        properties: GraduatedProperties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        out: List[FeeComponent] = []
        remaining = units
        last = len(properties.ranges) - 1
        for idx, r in enumerate(properties.ranges):
            if remaining <= 0:
                break
            if r.to_value is None or idx == last:
                used = remaining
            else:
                used = min(remaining, r.to_value - r.from_value)
            label = range_label(r)
            out.append(
                self.component(
                    f"tier {label}",
                    used,
                    used * r.per_unit_amount,
                    currency,
                    per_unit_amount=str(r.per_unit_amount),
                )
            )
            if r.flat_amount:
                out.append(self.component(f"tier {label} flat", 1, r.flat_amount, currency))
            remaining -= used
        return out
