"""Validation dispatcher: picks the validator matching a charge's model."""

from __future__ import annotations

from typing import Optional

from .base import ChargeModel
from .properties import PROPERTIES_TYPES, Properties
from .registry import ChargeModelRegistry, default_registry
from .types import ChargeModelKind, ConfigurationError, ValidationResult


def select_model(kind: ChargeModelKind, properties: Properties, registry: Optional[ChargeModelRegistry] = None) -> ChargeModel:
    kind = ChargeModelKind.parse(kind)
    expected = PROPERTIES_TYPES[kind]
    if not isinstance(properties, expected):
        raise ConfigurationError(
            f"{kind.value} charge carries {type(properties).__name__}, expected {expected.__name__}"
        )
    return (registry or default_registry()).get(kind)


def validate_properties(
    kind: ChargeModelKind,
    properties: Properties,
    registry: Optional[ChargeModelRegistry] = None,
) -> ValidationResult:
    return select_model(kind, properties, registry).validate(properties)


def validate_charge(charge, registry: Optional[ChargeModelRegistry] = None) -> ValidationResult:
    """Validate ``charge.properties`` with the validator of ``charge.model`` only."""
    return validate_properties(charge.model, charge.properties, registry)
