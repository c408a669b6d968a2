from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Protocol

from .eligibility import CouponCheckResult, check_coupon
from .models import AppliedCoupon, Coupon, Customer

_LOGGER = logging.getLogger(__name__)


class CouponStore(Protocol):
    """Persistence boundary for customers, coupons and applied coupons."""

    def get_customer(self, customer_id: str) -> Optional[Customer]: ...

    def get_coupon(self, coupon_id: str) -> Optional[Coupon]: ...

    def applied_coupons(self, customer_id: str) -> List[AppliedCoupon]: ...

    def add_applied_coupon(self, applied: AppliedCoupon) -> None: ...


class InMemoryCouponStore:
    def __init__(self) -> None:
        self.customers: Dict[str, Customer] = {}
        self.coupons: Dict[str, Coupon] = {}
        self.applied: List[AppliedCoupon] = []

    def add_customer(self, customer: Customer) -> Customer:
        self.customers[customer.id] = customer
        return customer

    def add_coupon(self, coupon: Coupon) -> Coupon:
        self.coupons[coupon.id] = coupon
        return coupon

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.customers.get(customer_id)

    def get_coupon(self, coupon_id: str) -> Optional[Coupon]:
        return self.coupons.get(coupon_id)

    def applied_coupons(self, customer_id: str) -> List[AppliedCoupon]:
        return [a for a in self.applied if a.customer_id == customer_id]

    def add_applied_coupon(self, applied: AppliedCoupon) -> None:
        self.applied.append(applied)


class AppliedCouponService:
    """Apply coupons to customers, recording an application only when eligible."""

    def __init__(self, store: CouponStore) -> None:
        self.store = store
        self._lock = threading.Lock()

    def create(
        self,
        customer_id: str,
        coupon_id: str,
        amount_cents: Optional[int] = None,
        amount_currency: Optional[str] = None,
    ) -> CouponCheckResult:
        # Check and insert under one lock so two concurrent calls cannot both pass.
        with self._lock:
            customer = self.store.get_customer(customer_id)
            coupon = self.store.get_coupon(coupon_id)
            applied = self.store.applied_coupons(customer_id) if customer is not None else []
            result = check_coupon(customer, coupon, applied, amount_cents, amount_currency)
            if not result.success:
                _LOGGER.info("Coupon %s not applied to customer %s: %s", coupon_id, customer_id, result.error)
                return result
            self.store.add_applied_coupon(result.applied_coupon)
        _LOGGER.info("Coupon %s applied to customer %s", coupon_id, customer_id)
        return result
