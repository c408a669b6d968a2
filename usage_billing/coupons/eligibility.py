"""Coupon eligibility rules.

Checks run in a fixed order and the first failing one decides the single
error code returned; callers rely on that order when several conditions
fail at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .models import AppliedCoupon, Coupon, Customer

NOT_FOUND = "not_found"
NO_ACTIVE_SUBSCRIPTION = "no_active_subscription"
COUPON_ALREADY_APPLIED = "coupon_already_applied"
CURRENCIES_DOES_NOT_MATCH = "currencies_does_not_match"


@dataclass(frozen=True)
class CouponCheckResult:
    success: bool
    error: Optional[str] = None
    applied_coupon: Optional[AppliedCoupon] = None

    @classmethod
    def failure(cls, error: str) -> "CouponCheckResult":
        return cls(success=False, error=error)

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "error": self.error}


def check_coupon(
    customer: Optional[Customer],
    coupon: Optional[Coupon],
    applied: Iterable[AppliedCoupon] = (),
    amount_cents: Optional[int] = None,
    amount_currency: Optional[str] = None,
) -> CouponCheckResult:
    """Decide whether ``coupon`` may be applied to ``customer``.

    An override amount/currency replaces the coupon's own on success; the
    currency check uses the override currency when one is given.
    """
    if customer is None:
        return CouponCheckResult.failure(NOT_FOUND)
    if coupon is None or not coupon.active:
        return CouponCheckResult.failure(NOT_FOUND)
    if not customer.has_active_subscription:
        return CouponCheckResult.failure(NO_ACTIVE_SUBSCRIPTION)
    if any(a.customer_id == customer.id and a.coupon_id == coupon.id for a in applied):
        return CouponCheckResult.failure(COUPON_ALREADY_APPLIED)

    currency = (amount_currency or coupon.amount_currency or "").upper()
    if currency != (customer.currency or "").upper():
        return CouponCheckResult.failure(CURRENCIES_DOES_NOT_MATCH)

    return CouponCheckResult(
        success=True,
        applied_coupon=AppliedCoupon(
            customer_id=customer.id,
            coupon_id=coupon.id,
            amount_cents=coupon.amount_cents if amount_cents is None else int(amount_cents),
            amount_currency=currency,
        ),
    )
