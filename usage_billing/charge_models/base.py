from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional, Protocol

from ..money import to_minor_units
from .properties import Properties
from .types import ChargeModelKind, ErrorCollector, FeeComponent, ValidationResult


class ChargeModel(Protocol):
    """A pricing policy for one charge model kind."""

    kind: ChargeModelKind
    properties_type: type

    def validate(self, properties: Properties) -> ValidationResult: ...

    def compute(
        self,
        properties: Properties,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]: ...


class BaseChargeModel:
    """Shared helpers; subclasses implement check() and compute()."""

    kind: ChargeModelKind
    properties_type: type = object

    def validate(self, properties: Properties) -> ValidationResult:
        errors = ErrorCollector()
        self.check(properties, errors)
        return errors.result()

    def check(self, properties: Any, errors: ErrorCollector) -> None:
        return None

    def compute(
        self,
        properties: Any,
        units: Decimal,
        currency: str,
        *,
        events_count: int = 0,
    ) -> List[FeeComponent]:
        return []

    @staticmethod
    def non_negative(value: Optional[Decimal]) -> bool:
        return value is not None and value >= 0

    @staticmethod
    def component(label: str, units: Any, amount: Decimal, currency: str, **details: Any) -> FeeComponent:
        return FeeComponent(
            label=label,
            units=units,
            amount_cents=to_minor_units(amount, currency),
            details=details,
        )
