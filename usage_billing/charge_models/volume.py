from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from .base import BaseChargeModel
from .properties import PriceRange, VolumeProperties
from .ranges import range_amounts_valid, range_label, ranges_are_contiguous
from .types import ChargeModelKind, ErrorCollector, FeeComponent


def find_volume_range(ranges, units: Decimal) -> Optional[PriceRange]:
    """The one range pricing the whole quantity; overflow lands in the last range."""
    for r in ranges:
        if r.contains(units):
            return r
    return ranges[-1] if ranges else None


class VolumeChargeModel(BaseChargeModel):
    """Single-bucket tiers: the whole quantity is priced at the matching range."""

    kind = ChargeModelKind.VOLUME
    properties_type = VolumeProperties

    def check(self, properties: VolumeProperties, errors: ErrorCollector) -> None:
        if not ranges_are_contiguous(properties.ranges):
            errors.add("ranges", "invalid_ranges")
        if not range_amounts_valid(properties.ranges):
            errors.add("amount", "invalid_amount")

    def compute(
        self,
        properties: VolumeProperties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        if units <= 0:
            return []
        r = find_volume_range(properties.ranges, units)
        label = range_label(r)
        out = [
            self.component(
                f"volume {label}",
                units,
                units * r.per_unit_amount,
                currency,
                per_unit_amount=str(r.per_unit_amount),
            )
        ]
        if r.flat_amount:
            out.append(self.component(f"volume {label} flat", 1, r.flat_amount, currency))
        return out
