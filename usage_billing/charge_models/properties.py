"""Typed charge properties, one frozen dataclass per charge model.

Raw properties come from plan definitions (YAML/JSON) where amounts are
usually strings ("0.25"). Parsing is lenient on purpose: a value that is
missing or not a number becomes None and the model validator reports it as
a field error. Nothing in here raises for bad *values*; only a properties
payload of the wrong *shape* (not a mapping) is a configuration error.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..money import to_decimal
from .types import ChargeModelKind, ConfigurationError


@dataclass(frozen=True)
class StandardProperties:
    amount: Optional[Decimal]
    grouped_by: Tuple[str, ...] = ()
    grouped_by_valid: bool = True


@dataclass(frozen=True)
class PriceRange:
    """Half-open quantity interval [from_value, to_value); to_value None = open-ended."""

    from_value: Optional[Decimal]
    to_value: Optional[Decimal]
    per_unit_amount: Optional[Decimal]
    flat_amount: Optional[Decimal]
    # True when a bound was given but is not a number (distinct from open-ended).
    malformed: bool = False

    @property
    def open_ended(self) -> bool:
        return self.to_value is None and not self.malformed

    def contains(self, quantity: Decimal) -> bool:
        if self.from_value is None or quantity < self.from_value:
            return False
        return self.to_value is None or quantity < self.to_value


@dataclass(frozen=True)
class GraduatedProperties:
    ranges: Tuple[PriceRange, ...] = ()


@dataclass(frozen=True)
class VolumeProperties:
    ranges: Tuple[PriceRange, ...] = ()


@dataclass(frozen=True)
class PackageProperties:
    amount: Optional[Decimal]
    free_units: Optional[Decimal]
    package_size: Optional[Decimal]


@dataclass(frozen=True)
class PercentageProperties:
    rate: Optional[Decimal]
    fixed_amount: Optional[Decimal] = Decimal("0")
    free_units_per_events: Optional[Decimal] = Decimal("0")
    free_units_per_total_aggregation: Optional[Decimal] = Decimal("0")


Properties = Union[
    StandardProperties,
    GraduatedProperties,
    VolumeProperties,
    PackageProperties,
    PercentageProperties,
]

PROPERTIES_TYPES: Dict[ChargeModelKind, type] = {
    ChargeModelKind.STANDARD: StandardProperties,
    ChargeModelKind.GRADUATED: GraduatedProperties,
    ChargeModelKind.VOLUME: VolumeProperties,
    ChargeModelKind.PACKAGE: PackageProperties,
    ChargeModelKind.PERCENTAGE: PercentageProperties,
}


def _optional(raw: Mapping[str, Any], key: str) -> Optional[Decimal]:
    # Absent optional offsets default to zero; present-but-bad stays None.
    if raw.get(key) is None:
        return Decimal("0")
    return to_decimal(raw.get(key))


def _parse_bound(value: Any) -> Tuple[Optional[Decimal], bool]:
    if value is None:
        return None, False
    d = to_decimal(value)
    return d, d is None


def _parse_range(raw: Any) -> PriceRange:
    if not isinstance(raw, Mapping):
        return PriceRange(None, None, None, None, malformed=True)
    from_value, from_bad = _parse_bound(raw.get("from_value"))
    to_value, to_bad = _parse_bound(raw.get("to_value"))
    return PriceRange(
        from_value=from_value,
        to_value=to_value,
        per_unit_amount=to_decimal(raw.get("per_unit_amount")),
        flat_amount=to_decimal(raw.get("flat_amount")),
        malformed=from_bad or to_bad or raw.get("from_value") is None,
    )


def _parse_ranges(raw: Mapping[str, Any], *keys: str) -> Tuple[PriceRange, ...]:
    items: Any = None
    for k in keys:
        if raw.get(k) is not None:
            items = raw.get(k)
            break
    if not isinstance(items, list):
        return ()
    return tuple(_parse_range(it) for it in items)


def _parse_grouped_by(value: Any) -> Tuple[Tuple[str, ...], bool]:
    if value is None:
        return (), True
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        return (), False
    return tuple(v.strip() for v in value), True


def parse_properties(kind: ChargeModelKind, raw: Optional[Mapping[str, Any]]) -> Properties:
    """Build the Properties variant for ``kind`` from a raw mapping."""
    kind = ChargeModelKind.parse(kind)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{kind.value} properties must be a mapping, got {type(raw).__name__}")

    if kind is ChargeModelKind.STANDARD:
        grouped_by, grouped_ok = _parse_grouped_by(raw.get("grouped_by"))
        return StandardProperties(
            amount=to_decimal(raw.get("amount")),
            grouped_by=grouped_by,
            grouped_by_valid=grouped_ok,
        )
    if kind is ChargeModelKind.GRADUATED:
        return GraduatedProperties(ranges=_parse_ranges(raw, "graduated_ranges", "ranges"))
    if kind is ChargeModelKind.VOLUME:
        return VolumeProperties(ranges=_parse_ranges(raw, "volume_ranges", "ranges"))
    if kind is ChargeModelKind.PACKAGE:
        return PackageProperties(
            amount=to_decimal(raw.get("amount")),
            free_units=_optional(raw, "free_units"),
            package_size=to_decimal(raw.get("package_size")),
        )
    if kind is ChargeModelKind.PERCENTAGE:
        return PercentageProperties(
            rate=to_decimal(raw.get("rate")),
            fixed_amount=_optional(raw, "fixed_amount"),
            free_units_per_events=_optional(raw, "free_units_per_events"),
            free_units_per_total_aggregation=_optional(raw, "free_units_per_total_aggregation"),
        )
    raise ConfigurationError(f"No properties type for charge model {kind.value}")


__all__ = [
    "GraduatedProperties",
    "PackageProperties",
    "PercentageProperties",
    "PriceRange",
    "Properties",
    "PROPERTIES_TYPES",
    "StandardProperties",
    "VolumeProperties",
    "parse_properties",
]
