from __future__ import annotations

from decimal import Decimal
from typing import List

from .base import BaseChargeModel
from .properties import StandardProperties
from .types import ChargeModelKind, ErrorCollector, FeeComponent


class StandardChargeModel(BaseChargeModel):
    """Flat price per unit."""

    kind = ChargeModelKind.STANDARD
    properties_type = StandardProperties

    def check(self, properties: StandardProperties, errors: ErrorCollector) -> None:
        if not self.non_negative(properties.amount):
            errors.add("amount", "invalid_amount")
        if not properties.grouped_by_valid:
            errors.add("grouped_by", "invalid_grouped_by")

    def compute(
        self,
        properties: StandardProperties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        amount = properties.amount
        return [self.component("units", units, units * amount, currency, unit_amount=str(amount))]
