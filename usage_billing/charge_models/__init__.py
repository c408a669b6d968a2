from .base import BaseChargeModel, ChargeModel
from .properties import (
    GraduatedProperties,
    PackageProperties,
    PercentageProperties,
    PriceRange,
    Properties,
    StandardProperties,
    VolumeProperties,
    parse_properties,
)
from .registry import ChargeModelRegistry, build_default_registry, default_registry
from .types import ChargeModelKind, ConfigurationError, FeeComponent, ValidationResult
from .validation import validate_charge, validate_properties

__all__ = [
    "BaseChargeModel",
    "ChargeModel",
    "ChargeModelKind",
    "ChargeModelRegistry",
    "ConfigurationError",
    "FeeComponent",
    "GraduatedProperties",
    "PackageProperties",
    "PercentageProperties",
    "PriceRange",
    "Properties",
    "StandardProperties",
    "ValidationResult",
    "VolumeProperties",
    "build_default_registry",
    "default_registry",
    "parse_properties",
    "validate_charge",
    "validate_properties",
]
