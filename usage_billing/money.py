from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from .config import CURRENCY_EXPONENTS, DEFAULT_CURRENCY_EXPONENT

ZERO = Decimal("0")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a configured amount/quantity; None when missing or not a finite number.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    Booleans are rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    else:
        if isinstance(value, float):
            value = repr(value)
        s = str(value).strip()
        if not s:
            return None
        try:
            d = Decimal(s)
        except (InvalidOperation, ValueError):
            return None
    if not d.is_finite():
        return None
    return d


def is_integral(value: Optional[Decimal]) -> bool:
    return value is not None and value == value.to_integral_value()


def currency_exponent(currency: str) -> int:
    return CURRENCY_EXPONENTS.get((currency or "").upper(), DEFAULT_CURRENCY_EXPONENT)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Major-unit Decimal -> integer minor units, rounded half-up."""
    scale = Decimal(10) ** currency_exponent(currency)
    return int((amount * scale).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_minor_units(amount_cents: int, currency: str) -> str:
    exp = currency_exponent(currency)
    major = Decimal(amount_cents) / (Decimal(10) ** exp)
    return f"{major:,.{exp}f} {currency}"
