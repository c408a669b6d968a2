from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .base import ChargeModel
from .graduated import GraduatedChargeModel
from .package import PackageChargeModel
from .percentage import PercentageChargeModel
from .standard import StandardChargeModel
from .types import ChargeModelKind, ConfigurationError
from .volume import VolumeChargeModel


@dataclass
class ChargeModelRegistry:
    """Lookup table for charge models by model kind (one model per kind)."""

    models: Dict[ChargeModelKind, ChargeModel] = field(default_factory=dict)

    def register(self, model: ChargeModel) -> None:
        kind = ChargeModelKind.parse(model.kind)
        if kind in self.models:
            raise ConfigurationError(f"Charge model already registered for {kind.value}")
        self.models[kind] = model

    def get(self, kind: ChargeModelKind) -> ChargeModel:
        kind = ChargeModelKind.parse(kind)
        try:
            return self.models[kind]
        except KeyError:
            raise ConfigurationError(f"No charge model registered for {kind.value}") from None

    def ensure_complete(self) -> "ChargeModelRegistry":
        missing = [k.value for k in ChargeModelKind if k not in self.models]
        if missing:
            raise ConfigurationError(f"Charge model registry is missing: {', '.join(missing)}")
        return self


def build_default_registry() -> ChargeModelRegistry:
    """Registry with every charge model kind mapped; fails fast when one is missing."""

    reg = ChargeModelRegistry()
    reg.register(StandardChargeModel())
    reg.register(GraduatedChargeModel())
    reg.register(VolumeChargeModel())
    reg.register(PackageChargeModel())
    reg.register(PercentageChargeModel())
    return reg.ensure_complete()


_DEFAULT_REGISTRY: ChargeModelRegistry | None = None


def default_registry() -> ChargeModelRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_default_registry()
    return _DEFAULT_REGISTRY
