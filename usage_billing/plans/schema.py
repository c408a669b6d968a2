"""Plan and charge records.

A Charge is immutable: changing its properties means building a new Charge
with a bumped ``version`` so cached ratings of the old version stay valid.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..aggregation.events import BillableMetric
from ..charge_models.properties import Properties, StandardProperties
from ..charge_models.registry import ChargeModelRegistry
from ..charge_models.types import ChargeModelKind, ValidationResult
from ..charge_models.validation import validate_charge


@dataclass(frozen=True)
class Charge:
    id: str
    model: ChargeModelKind
    properties: Properties
    billable_metric: BillableMetric
    currency: str
    version: int = 1
    plan_code: str = ""

    @property
    def grouping_keys(self) -> Tuple[str, ...]:
        if isinstance(self.properties, StandardProperties):
            return self.properties.grouped_by
        return ()

    def validate(self, registry: Optional[ChargeModelRegistry] = None) -> ValidationResult:
        return validate_charge(self, registry)

    def errors(self, registry: Optional[ChargeModelRegistry] = None) -> Dict[str, List[str]]:
        """Validator codes merged under the ``properties`` key."""
        return self.validate(registry).flattened("properties")


@dataclass(frozen=True)
class Plan:
    code: str
    currency: str
    charges: List[Charge] = field(default_factory=list)
    billable_metrics: Dict[str, BillableMetric] = field(default_factory=dict)
    description: str = ""
    source_file: str = ""

    def charge(self, charge_id: str) -> Charge:
        for c in self.charges:
            if c.id == charge_id:
                return c
        raise KeyError(f"Plan {self.code} has no charge {charge_id!r}")
