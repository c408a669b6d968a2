from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..coupons.models import AppliedCoupon
from .rating import Fee, RatingError


@dataclass(frozen=True)
class CouponCredit:
    coupon_id: str
    amount_cents: int


@dataclass(frozen=True)
class InvoiceTotal:
    currency: str
    fees_amount_cents: int
    coupons_amount_cents: int
    total_amount_cents: int
    credits: Tuple[CouponCredit, ...] = ()


def invoice_total(
    fees: Iterable[Fee],
    applied_coupons: Iterable[AppliedCoupon] = (),
    currency: Optional[str] = None,
) -> InvoiceTotal:
    """Sum fees and deduct applied coupons in application order.

    A coupon never takes the total below zero; whatever it cannot use is
    simply not consumed. All fees and coupons must share one currency.
    """
    fees = list(fees)
    cur = (currency or (fees[0].currency if fees else "")).upper()
    for f in fees:
        if f.currency.upper() != cur:
            raise RatingError(f"Fee for charge {f.charge_id} is in {f.currency}, invoice is in {cur}")

    fees_amount = sum(f.amount_cents for f in fees)
    remaining = fees_amount
    credits: List[CouponCredit] = []
    for ac in applied_coupons:
        if ac.amount_currency.upper() != cur:
            raise RatingError(f"Coupon {ac.coupon_id} is in {ac.amount_currency}, invoice is in {cur}")
        used = min(max(ac.amount_cents, 0), remaining)
        credits.append(CouponCredit(coupon_id=ac.coupon_id, amount_cents=used))
        remaining -= used

    return InvoiceTotal(
        currency=cur,
        fees_amount_cents=fees_amount,
        coupons_amount_cents=fees_amount - remaining,
        total_amount_cents=remaining,
        credits=tuple(credits),
    )
