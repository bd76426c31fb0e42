"""Coupon aggregate (CQRS): discount codes applied at checkout.

Coupons are looked up by code and referenced by id. A coupon is valid while
it is active, inside its validity window and not yet used up. Usage is
counted once per paid order, by the coupon ledger.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from ordering.domain import ordering
from ordering.order.pricing import round_money, to_decimal


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def _as_utc(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    description = String(max_length=500, default="")
    coupon_type = String(required=True, choices=CouponType)
    value = Float(required=True, min_value=0.0)
    min_order_value = Float(default=0.0, min_value=0.0)
    max_discount = Float()  # None: uncapped
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    usage_limit = Integer()  # None: unlimited
    used_count = Integer(default=0, min_value=0)
    # Per-customer limit; stored for reporting, not enforced at checkout
    user_limit = Integer(default=1)
    is_active = Boolean(default=True)

    @classmethod
    def create(cls, code, coupon_type, value, valid_from, valid_until, **kwargs):
        if not code or not code.strip():
            raise ValidationError({"code": ["Coupon code is required"]})
        return cls(
            code=code.strip().upper(),
            coupon_type=coupon_type,
            value=value,
            valid_from=valid_from,
            valid_until=valid_until,
            **kwargs,
        )

    def is_valid(self, now=None):
        now = now or datetime.now(UTC)
        if not self.is_active:
            return False
        if now < _as_utc(self.valid_from) or now > _as_utc(self.valid_until):
            return False
        if self.usage_limit and (self.used_count or 0) >= self.usage_limit:
            return False
        return True

    def calculate_discount(self, order_value):
        """Discount for ``order_value``, rounded half-up to two decimals.

        Percentage coupons are capped at ``max_discount`` when one is set;
        fixed coupons never exceed the order value. Orders below the
        minimum get no discount.
        """
        order_value = to_decimal(order_value)
        if order_value < to_decimal(self.min_order_value):
            return 0.0

        if CouponType(self.coupon_type) == CouponType.PERCENTAGE:
            discount = order_value * to_decimal(self.value) / 100
            if self.max_discount:
                discount = min(discount, to_decimal(self.max_discount))
        else:
            discount = min(to_decimal(self.value), order_value)

        return float(round_money(discount))

    def record_usage(self):
        self.used_count = (self.used_count or 0) + 1


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code):
        """Coupon with ``code`` (case-insensitive), or None."""
        if not code:
            return None
        return self._dao.query.filter(code=code.strip().upper()).all().first
