from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CouponStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Customer:
    id: str
    currency: str
    has_active_subscription: bool = False


@dataclass(frozen=True)
class Coupon:
    id: str
    amount_cents: int
    amount_currency: str
    status: CouponStatus = CouponStatus.ACTIVE

    @property
    def active(self) -> bool:
        return CouponStatus(self.status) is CouponStatus.ACTIVE


@dataclass(frozen=True)
class AppliedCoupon:
    customer_id: str
    coupon_id: str
    amount_cents: int
    amount_currency: str
