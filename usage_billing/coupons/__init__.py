from .eligibility import (
    COUPON_ALREADY_APPLIED,
    CURRENCIES_DOES_NOT_MATCH,
    NO_ACTIVE_SUBSCRIPTION,
    NOT_FOUND,
    CouponCheckResult,
    check_coupon,
)
from .models import AppliedCoupon, Coupon, CouponStatus, Customer
from .service import AppliedCouponService, CouponStore, InMemoryCouponStore

__all__ = [
    "AppliedCoupon",
    "AppliedCouponService",
    "COUPON_ALREADY_APPLIED",
    "CURRENCIES_DOES_NOT_MATCH",
    "Coupon",
    "CouponCheckResult",
    "CouponStatus",
    "CouponStore",
    "Customer",
    "InMemoryCouponStore",
    "NOT_FOUND",
    "NO_ACTIVE_SUBSCRIPTION",
    "check_coupon",
]
