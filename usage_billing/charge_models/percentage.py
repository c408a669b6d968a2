from __future__ import annotations

from decimal import Decimal
from typing import List

from ..money import is_integral
from .base import BaseChargeModel
from .properties import PercentageProperties
from .types import ChargeModelKind, ErrorCollector, FeeComponent

HUNDRED = Decimal("100")


class PercentageChargeModel(BaseChargeModel):
    """A percentage of the aggregated value plus a fixed amount per paying event.

    rate is expressed in percent (rate 2.5 means 2.5%). The first
    free_units_per_events events carry no fixed amount and the first
    free_units_per_total_aggregation units carry no percentage. A period with
    no aggregated units owes no fixed amount either, whatever its event count.
    """

    kind = ChargeModelKind.PERCENTAGE
    properties_type = PercentageProperties

    def check(self, properties: PercentageProperties, errors: ErrorCollector) -> None:
        if not self.non_negative(properties.rate):
            errors.add("rate", "invalid_rate")
        if not self.non_negative(properties.fixed_amount):
            errors.add("fixed_amount", "invalid_fixed_amount")
        per_events = properties.free_units_per_events
        if not (self.non_negative(per_events) and is_integral(per_events)):
            errors.add("free_units_per_events", "invalid_free_units_per_events")
        if not self.non_negative(properties.free_units_per_total_aggregation):
            errors.add("free_units_per_total_aggregation", "invalid_free_units_per_total_aggregation")

    def compute(
        self,
        properties: PercentageProperties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        zero = Decimal("0")
        billable_units = max(units - properties.free_units_per_total_aggregation, zero)
        billable_events = max(Decimal(events_count) - properties.free_units_per_events, zero)
        if units == zero:
            billable_events = zero

        out = [
            self.component(
                "percentage",
                billable_units,
                billable_units * properties.rate / HUNDRED,
                currency,
                rate=str(properties.rate),
                free_units=str(min(units, properties.free_units_per_total_aggregation)),
            )
        ]
        if properties.fixed_amount:
            out.append(
                self.component(
                    "fixed fee",
                    billable_events,
                    billable_events * properties.fixed_amount,
                    currency,
                    fixed_amount=str(properties.fixed_amount),
                    free_events=str(min(Decimal(events_count), properties.free_units_per_events)),
                )
            )
        return out
