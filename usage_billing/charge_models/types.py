from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ConfigurationError(ValueError):
    """Raised when plan or charge configuration cannot be used at all."""


class ChargeModelKind(str, Enum):
    STANDARD = "standard"
    GRADUATED = "graduated"
    VOLUME = "volume"
    PACKAGE = "package"
    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, value: Any) -> "ChargeModelKind":
        if isinstance(value, cls):
            return value
        tag = str(value or "").strip().lower()
        for kind in cls:
            if kind.value == tag:
                return kind
        raise ConfigurationError(f"Unknown charge model: {value!r}")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating charge properties.

    errors maps a properties field to its ordered error codes. The codes are
    consumed by upstream error reporting, so their spelling is stable.
    """

    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def flattened(self, key: str = "properties") -> Dict[str, List[str]]:
        """All codes under a single key, de-duplicated, first occurrence first."""
        if self.valid:
            return {}
        codes: List[str] = []
        for field_codes in self.errors.values():
            for code in field_codes:
                if code not in codes:
                    codes.append(code)
        return {key: codes}

    def as_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": {k: list(v) for k, v in self.errors.items()}}


class ErrorCollector:
    """Ordered field -> codes accumulator used by the validators."""

    def __init__(self) -> None:
        self._errors: Dict[str, List[str]] = {}

    def add(self, field_name: str, code: str) -> None:
        codes = self._errors.setdefault(field_name, [])
        if code not in codes:
            codes.append(code)

    def result(self) -> ValidationResult:
        return ValidationResult(errors={k: list(v) for k, v in self._errors.items()})


@dataclass(frozen=True)
class FeeComponent:
    """One line of a fee breakdown (a tier, a package block, a fixed fee...)."""

    label: str
    units: Any
    amount_cents: int
    details: Dict[str, Any] = field(default_factory=dict)
