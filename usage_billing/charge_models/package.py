from __future__ import annotations

from decimal import ROUND_CEILING, Decimal
from typing import List

from ..money import is_integral
from .base import BaseChargeModel
from .properties import PackageProperties
from .types import ChargeModelKind, ErrorCollector, FeeComponent


class PackageChargeModel(BaseChargeModel):
    """Units are sold in blocks of package_size after free_units; partial blocks round up."""

    kind = ChargeModelKind.PACKAGE
    properties_type = PackageProperties

    def check(self, properties: PackageProperties, errors: ErrorCollector) -> None:
        if not self.non_negative(properties.amount):
            errors.add("amount", "invalid_amount")
        if not (self.non_negative(properties.free_units) and is_integral(properties.free_units)):
            errors.add("free_units", "invalid_free_units")
        size = properties.package_size
        if size is None or size <= 0 or not is_integral(size):
            errors.add("package_size", "invalid_package_size")

    def compute(
        self,
        properties: PackageProperties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        paid_units = max(units - properties.free_units, Decimal("0"))
        packages = (paid_units / properties.package_size).to_integral_value(rounding=ROUND_CEILING)
        out: List[FeeComponent] = []
        if properties.free_units:
            out.append(self.component("free units", min(units, properties.free_units), Decimal("0"), currency))
        out.append(
            self.component(
                "packages",
                packages,
                packages * properties.amount,
                currency,
                package_size=str(properties.package_size),
                paid_units=str(paid_units),
            )
        )
        return out
